# -*- coding: utf-8 -*-
"""
区域 Provider 实现

功能：
- StaticRegionProvider：使用配置或命令行指定的区域
- EC2RegionProvider：通过 EC2 DescribeRegions 获取账号已启用的全部区域
"""

import logging
from typing import Iterable, List

from botocore.exceptions import BotoCoreError, ClientError

from api.aws.ec2 import EC2Client
from provider.discovery.interfaces import RegionProvider
from quota.exceptions import EnumerationError

logger = logging.getLogger(__name__)

DEFAULT_REGION = 'us-east-1'


def _dedupe(regions: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for region in regions:
        region = (region or '').strip()
        if region and region not in seen:
            seen.add(region)
            result.append(region)
    return result


class StaticRegionProvider(RegionProvider):
    """静态区域列表，未指定时使用 us-east-1"""

    def __init__(self, regions: Iterable[str] = None):
        self.regions = _dedupe(regions or []) or [DEFAULT_REGION]

    def get_regions(self) -> List[str]:
        return list(self.regions)

    def get_provider_type(self) -> str:
        return "static"


class EC2RegionProvider(RegionProvider):
    """
    EC2 区域发现

    功能：
    - 调用 DescribeRegions 列出账号已启用的区域
    - 结果在实例内缓存，定时审计时不重复调用
    """

    def __init__(self, ec2_client: EC2Client = None, region: str = DEFAULT_REGION,
                 profile: str = None, retry_policy=None):
        self.ec2_client = ec2_client
        self.region = region
        self.profile = profile
        self.retry_policy = retry_policy
        self._regions: List[str] = []

    def get_regions(self) -> List[str]:
        if not self._regions:
            if self.ec2_client is None:
                try:
                    self.ec2_client = EC2Client(self.region, self.profile, self.retry_policy)
                except (ClientError, BotoCoreError) as e:
                    logger.error(f"[区域] 创建 EC2 客户端失败: {e}")
                    raise EnumerationError(self.region, None, str(e)) from e
            self._regions = _dedupe(self.ec2_client.describe_regions())
            logger.info(f"[区域] 通过 EC2 发现 {len(self._regions)} 个区域")
        return list(self._regions)

    def get_provider_type(self) -> str:
        return "ec2"
