# -*- coding: utf-8 -*-
"""
配额使用率解析模块

功能：
- 定义使用率解析策略接口（UtilizationStrategy）
- CloudWatch 策略：配额带有 UsageMetric 时通过 GetMetricData 计算
- 专用策略：没有 UsageMetric 的配额按 quota_code 查表，调用服务自身的 API
- UtilizationResolver 负责选择策略，并保证每个配额只计算一次
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from api.aws.awslambda import LambdaClient
from cloudwatch.client import CloudWatchClient
from quota.exceptions import ResolutionError
from quota.model import Quota
from retry.retry import RetryPolicy

logger = logging.getLogger(__name__)


def calculate_utilization(used: float, limit: float) -> int:
    """
    计算使用率百分比

    截断为整数并限制在 0-100，limit 非正数时返回 0
    """
    if not limit or limit <= 0:
        return 0
    return max(0, min(100, int(used / limit * 100)))


class UtilizationStrategy(ABC):
    """使用率解析策略接口"""

    @abstractmethod
    def utilization(self, quota: Quota) -> int:
        """
        计算配额使用率

        Returns:
            使用率百分比（0-100）

        Raises:
            ResolutionError: 查询失败或无数据
        """
        pass


class CloudWatchUtilization(UtilizationStrategy):
    """通过 CloudWatch SERVICE_QUOTA() 表达式计算使用率"""

    def __init__(self, cloudwatch_client: CloudWatchClient):
        self.client = cloudwatch_client

    def utilization(self, quota: Quota) -> int:
        return self.client.service_quota_utilization(quota.usage_metric, quota.quota_code)


class LambdaCodeStorageUtilization(UtilizationStrategy):
    """
    L-2ACBD22F: Function and layer storage

    当前区域内部署包和层可用的存储空间，CloudWatch 没有对应指标，
    使用 GetAccountSettings 返回的 TotalCodeSize 计算
    """

    def __init__(self, lambda_client: LambdaClient):
        self.client = lambda_client

    def utilization(self, quota: Quota) -> int:
        try:
            settings = self.client.get_account_settings()
        except (ClientError, BotoCoreError) as e:
            raise ResolutionError(quota.quota_code, str(e)) from e

        used = settings.get('AccountUsage', {}).get('TotalCodeSize')
        limit = settings.get('AccountLimit', {}).get('TotalCodeSize')
        if used is None or limit is None:
            raise ResolutionError(quota.quota_code, "GetAccountSettings 响应缺少 TotalCodeSize")

        return calculate_utilization(used, limit)


# quota_code -> 专用策略构建函数
CAPABILITY_TABLE: Dict[str, Callable[['UtilizationResolver'], UtilizationStrategy]] = {
    'L-2ACBD22F': lambda resolver: LambdaCodeStorageUtilization(resolver.lambda_client()),
}


class UtilizationResolver:
    """
    单个区域的使用率解析器

    功能：
    - 按配额选择解析策略（CloudWatch 优先，其次查表）
    - 通过 Quota.memoize 保证同一配额最多发起一次远程计算
    - 查询失败转换为 None，错误保存在配额上供汇报
    """

    def __init__(self, region: str, profile: str = None, retry_policy: RetryPolicy = None,
                 cloudwatch_client: CloudWatchClient = None, lambda_client: LambdaClient = None):
        """
        初始化使用率解析器

        Args:
            region: AWS 区域
            profile: AWS profile（可选）
            retry_policy: 重试策略（可选）
            cloudwatch_client: CloudWatch 客户端（可选，默认按需创建）
            lambda_client: Lambda 客户端（可选，默认按需创建）
        """
        self.region = region
        self.profile = profile
        self.retry_policy = retry_policy
        self._cloudwatch_client = cloudwatch_client
        self._lambda_client = lambda_client
        self._clients_lock = threading.Lock()

    def cloudwatch_client(self) -> CloudWatchClient:
        with self._clients_lock:
            if self._cloudwatch_client is None:
                self._cloudwatch_client = CloudWatchClient(self.region, self.profile, self.retry_policy)
            return self._cloudwatch_client

    def lambda_client(self) -> LambdaClient:
        with self._clients_lock:
            if self._lambda_client is None:
                self._lambda_client = LambdaClient(self.region, self.profile, self.retry_policy)
            return self._lambda_client

    def strategy_for(self, quota: Quota) -> Optional[UtilizationStrategy]:
        """选择解析策略，不支持时返回 None"""
        if quota.usage_metric is not None:
            return CloudWatchUtilization(self.cloudwatch_client())

        factory = CAPABILITY_TABLE.get(quota.quota_code)
        if factory is not None:
            return factory(self)

        return None

    def compute(self, quota: Quota) -> Optional[int]:
        """执行一次实际的使用率计算（不缓存）"""
        strategy = self.strategy_for(quota)
        if strategy is None:
            return None

        try:
            return strategy.utilization(quota)
        except ResolutionError as e:
            logger.warning(f"[解析] 配额 {quota.quota_code} ({quota.service_code}, {quota.region}) 使用率查询失败: {e}")
            raise

    def resolve(self, quota: Quota) -> Optional[int]:
        """
        解析配额使用率（可并发调用，结果缓存）

        Returns:
            使用率百分比，失败或不支持时返回 None
        """
        return quota.memoize(self.compute)
