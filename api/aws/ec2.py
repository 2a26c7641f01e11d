# -*- coding: utf-8 -*-
"""
EC2 API 客户端模块

功能：
- 封装 EC2 DescribeRegions 调用
- 在未指定区域时提供账号可用的区域列表
"""

import logging
from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from provider.aws.session import build_client
from quota.exceptions import EnumerationError
from retry.retry import RetryPolicy

logger = logging.getLogger(__name__)


class EC2Client:
    """
    EC2 API 客户端

    功能：
    - 列出当前账号已启用的区域
    """

    def __init__(self, region: str = 'us-east-1', profile: str = None,
                 retry_policy: RetryPolicy = None, client=None):
        """
        初始化 EC2 客户端

        Args:
            region: 调用 DescribeRegions 使用的区域
            profile: AWS profile（可选）
            retry_policy: 重试策略（可选）
            client: 已创建的 boto3 客户端（可选，主要用于测试）
        """
        self.region = region
        self.client = client or build_client('ec2', region, profile, retry_policy)

    def describe_regions(self) -> List[str]:
        """
        列出已启用的区域（按名称排序）

        Raises:
            EnumerationError: API 调用失败
        """
        try:
            response = self.client.describe_regions()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"DescribeRegions 失败: {e}")
            raise EnumerationError(self.region, None, str(e)) from e

        regions = sorted(
            r['RegionName'] for r in response.get('Regions', [])
            if r.get('RegionName')
        )
        logger.info(f"获取到 {len(regions)} 个可用区域")
        return regions
