# -*- coding: utf-8 -*-
"""
AWS 客户端构建模块

功能：
- 统一创建带重试策略的 boto3 客户端
- 支持指定 profile，否则使用默认凭证链
"""

import logging

import boto3

from retry.retry import RetryPolicy, boto_config

logger = logging.getLogger(__name__)


def build_client(service_name: str, region: str, profile: str = None, retry_policy: RetryPolicy = None):
    """
    创建 boto3 客户端

    每次创建独立的 Session（Session 不是线程安全的，客户端是）。

    Args:
        service_name: 服务名称（如 'service-quotas', 'cloudwatch'）
        region: AWS 区域
        profile: AWS profile 名称（可选）
        retry_policy: 重试策略（可选）

    Returns:
        boto3 客户端
    """
    try:
        session = boto3.Session(profile_name=profile) if profile else boto3.Session()
        client = session.client(service_name, region_name=region, config=boto_config(retry_policy))
        if profile:
            logger.debug(f"{service_name} 客户端初始化成功（profile: {profile}），区域: {region}")
        else:
            logger.debug(f"{service_name} 客户端初始化成功（使用默认凭证链），区域: {region}")
        return client
    except Exception as e:
        logger.error(f"初始化 {service_name} 客户端失败: {e}")
        raise
