# -*- coding: utf-8 -*-
"""
重试机制实现模块

功能：
- 定义 AWS API 调用的重试策略（自适应模式 + 指数退避）
- 转换为 botocore Config，限流和网络抖动由 SDK 自动重试
"""

from dataclasses import dataclass

from botocore.config import Config

from config.loader import DEFAULT_MAX_ATTEMPTS


@dataclass(frozen=True)
class RetryPolicy:
    """AWS 客户端重试策略"""
    max_attempts: int = DEFAULT_MAX_ATTEMPTS  # 最大尝试次数（包含首次调用）
    mode: str = 'adaptive'                    # adaptive: 指数退避 + 客户端限速
    connect_timeout: int = 10                 # 连接超时（秒）
    read_timeout: int = 60                    # 读取超时（秒）
    max_pool_connections: int = 10


def boto_config(policy: RetryPolicy = None) -> Config:
    """
    构建带重试策略的 botocore Config

    Args:
        policy: 重试策略（默认 adaptive，最多 5 次）

    Returns:
        botocore Config 对象
    """
    policy = policy or RetryPolicy()
    return Config(
        retries={'max_attempts': policy.max_attempts, 'mode': policy.mode},
        connect_timeout=policy.connect_timeout,
        read_timeout=policy.read_timeout,
        max_pool_connections=policy.max_pool_connections,
    )
