# -*- coding: utf-8 -*-
"""
AWS Service Quotas API 客户端模块

功能：
- 封装 AWS Service Quotas API 调用
- 分页列出区域内的服务代码
- 分页列出服务的所有配额（包含 UsageMetric 描述）
"""

import logging
from typing import Dict, List

from botocore.exceptions import BotoCoreError, ClientError

from provider.aws.session import build_client
from quota.exceptions import EnumerationError
from retry.retry import RetryPolicy

logger = logging.getLogger(__name__)


class ServiceQuotasClient:
    """
    AWS Service Quotas API 客户端

    功能：
    - 调用 ListServices 获取服务代码列表
    - 调用 ListServiceQuotas 获取服务配额列表
    - API 错误统一转换为 EnumerationError
    """

    def __init__(self, region: str = 'us-east-1', profile: str = None,
                 retry_policy: RetryPolicy = None, client=None):
        """
        初始化 Service Quotas 客户端

        Args:
            region: AWS 区域（默认 us-east-1）
            profile: AWS profile（可选）
            retry_policy: 重试策略（可选）
            client: 已创建的 boto3 客户端（可选，主要用于测试）
        """
        self.region = region
        self.client = client or build_client('service-quotas', region, profile, retry_policy)

    def list_service_codes(self) -> List[str]:
        """
        列出区域内的所有服务代码（按 API 返回顺序）

        Raises:
            EnumerationError: API 调用失败
        """
        service_codes = []
        try:
            paginator = self.client.get_paginator('list_services')
            for page in paginator.paginate():
                for service in page.get('Services', []):
                    service_code = service.get('ServiceCode')
                    if service_code:
                        service_codes.append(service_code)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"列出服务失败: region={self.region}, error={e}")
            raise EnumerationError(self.region, None, str(e)) from e

        logger.debug(f"列出服务成功: region={self.region}, 共 {len(service_codes)} 个服务")
        return service_codes

    def list_service_quotas(self, service_code: str) -> List[Dict]:
        """
        列出指定服务的所有配额

        Args:
            service_code: 服务代码（如 'ec2'）

        Returns:
            配额列表，每个配额包含 arn, name, quota_code, service_code, usage_metric 字段

        Raises:
            EnumerationError: API 调用失败
        """
        quotas = []
        try:
            paginator = self.client.get_paginator('list_service_quotas')
            for page in paginator.paginate(ServiceCode=service_code):
                for quota in page.get('Quotas', []):
                    quotas.append({
                        'arn': quota.get('QuotaArn', ''),
                        'name': quota.get('QuotaName', ''),
                        'quota_code': quota.get('QuotaCode', ''),
                        'service_code': quota.get('ServiceCode', service_code),
                        'usage_metric': quota.get('UsageMetric'),
                    })
        except (ClientError, BotoCoreError) as e:
            logger.error(f"列出配额失败: service_code={service_code}, region={self.region}, error={e}")
            raise EnumerationError(self.region, service_code, str(e)) from e

        logger.debug(f"列出配额成功: service_code={service_code}, region={self.region}, 共 {len(quotas)} 个配额")
        return quotas
