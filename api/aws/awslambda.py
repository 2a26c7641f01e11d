# -*- coding: utf-8 -*-
"""
Lambda API 客户端模块

功能：
- 封装 Lambda GetAccountSettings 调用
- 返回账号级别的代码存储用量和上限
"""

import logging
from typing import Any, Dict

from provider.aws.session import build_client
from retry.retry import RetryPolicy

logger = logging.getLogger(__name__)


class LambdaClient:
    """Lambda API 客户端"""

    def __init__(self, region: str = 'us-east-1', profile: str = None,
                 retry_policy: RetryPolicy = None, client=None):
        self.region = region
        self.client = client or build_client('lambda', region, profile, retry_policy)

    def get_account_settings(self) -> Dict[str, Any]:
        """
        获取账号设置

        Returns:
            包含 AccountLimit 和 AccountUsage 的响应字典

        Raises:
            ClientError / BotoCoreError: API 调用失败（由调用方转换）
        """
        logger.debug(f"调用 Lambda GetAccountSettings API: region={self.region}")
        return self.client.get_account_settings()
