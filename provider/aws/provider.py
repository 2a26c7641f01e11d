# -*- coding: utf-8 -*-
"""
AWS 配额目录构建模块

功能：
- 列出区域内的服务代码（带缓存）
- 列出服务的所有配额并转换为 Quota 对象
- 单条记录 ARN 解析失败时记录日志并跳过，不影响整个服务
"""

import logging
from typing import Dict, List, Tuple

from cache.cache import MemoryCache
from config.loader import DEFAULT_SERVICE_CACHE_TTL
from provider.aws.service_quotas import ServiceQuotasClient
from provider.aws.usage_collector import UtilizationResolver
from quota.exceptions import ArnFormatError
from quota.model import Quota, UsageMetric

logger = logging.getLogger(__name__)


class QuotaCatalogBuilder:
    """
    单个区域的配额目录构建器

    功能：
    - 调用 Service Quotas API 列举服务与配额
    - 为每个配额绑定该区域的使用率解析器（使用率此时尚未解析）
    """

    def __init__(self, region: str, client: ServiceQuotasClient = None, resolver: UtilizationResolver = None,
                 cache: MemoryCache = None, cache_ttl: int = DEFAULT_SERVICE_CACHE_TTL):
        """
        初始化配额目录构建器

        Args:
            region: AWS 区域
            client: Service Quotas 客户端（可选，默认按区域创建）
            resolver: 使用率解析器（可选）
            cache: 服务列表缓存（可选，不提供则不缓存）
            cache_ttl: 服务列表缓存时间（秒）
        """
        self.region = region
        self.client = client or ServiceQuotasClient(region=region)
        self.resolver = resolver
        self.cache = cache
        self.cache_ttl = cache_ttl

    def list_services(self) -> List[str]:
        """
        列出区域内的服务代码

        Raises:
            EnumerationError: 列举失败
        """
        if self.cache is None:
            return self.client.list_service_codes()

        return self.cache.get_or_load(
            f"service_codes:{self.region}",
            self.client.list_service_codes,
            self.cache_ttl,
        )

    def list_quotas(self, service_code: str) -> List[Quota]:
        """
        列出服务的所有配额（使用率未解析）

        Raises:
            EnumerationError: 列举失败
        """
        quotas, _ = self.fetch_quotas(service_code)
        return quotas

    def fetch_quotas(self, service_code: str) -> Tuple[List[Quota], List[ArnFormatError]]:
        """
        列出服务的所有配额，同时返回被跳过的记录

        Returns:
            (quotas, skipped) 元组，保持 API 返回顺序

        Raises:
            EnumerationError: 列举失败
        """
        quotas: List[Quota] = []
        skipped: List[ArnFormatError] = []

        for record in self.client.list_service_quotas(service_code):
            try:
                quotas.append(self._to_quota(record))
            except ArnFormatError as e:
                logger.warning(f"[目录] 跳过配额记录 {record.get('quota_code', '')} ({service_code}, {self.region}): {e}")
                skipped.append(e)

        logger.debug(f"[目录] 服务 {service_code} ({self.region}): {len(quotas)} 个配额，跳过 {len(skipped)} 个")
        return quotas, skipped

    def _to_quota(self, record: Dict) -> Quota:
        return Quota(
            arn=record.get('arn', ''),
            name=record.get('name', ''),
            usage_metric=UsageMetric.from_api(record.get('usage_metric')),
            resolver=self.resolver,
        )
