# -*- coding: utf-8 -*-
"""
配额数据结构模块

功能：
- 定义单个配额实例（Quota）及其使用率指标描述（UsageMetric）
- 使用率只计算一次（memoize），并发读取时不会重复发起远程查询
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from quota.arn import parse_arn
from quota.exceptions import ResolutionError

logger = logging.getLogger(__name__)


class ResolutionState(Enum):
    """使用率解析状态"""
    UNRESOLVED = "unresolved"    # 尚未解析
    RESOLVED = "resolved"        # 已得到使用率
    FAILED = "failed"            # 查询失败或无数据
    UNSUPPORTED = "unsupported"  # 既没有 CloudWatch 指标也没有专用查询方式


@dataclass(frozen=True)
class UsageMetric:
    """Service Quotas 返回的 CloudWatch 使用量指标描述"""
    namespace: str
    metric_name: str
    dimensions: Dict[str, str] = field(default_factory=dict)
    statistic: str = 'Maximum'

    @classmethod
    def from_api(cls, usage_metric: Optional[Dict]) -> Optional['UsageMetric']:
        """
        从 ListServiceQuotas 的 UsageMetric 字段构建

        Returns:
            UsageMetric 对象；字段不完整时返回 None
        """
        if not usage_metric:
            return None

        namespace = usage_metric.get('MetricNamespace')
        metric_name = usage_metric.get('MetricName')
        if not namespace or not metric_name:
            return None

        return cls(
            namespace=namespace,
            metric_name=metric_name,
            dimensions=dict(usage_metric.get('MetricDimensions') or {}),
            statistic=usage_metric.get('MetricStatisticRecommendation') or 'Maximum',
        )


class Quota:
    """
    单个服务配额实例

    功能：
    - 保存 ARN 解析出的 region / account_id / service_code / quota_code
    - 使用率（0-100）只写入一次，读取方要么看到未设置，要么看到完整的值
    """

    def __init__(self, arn: str, name: str, usage_metric: Optional[UsageMetric] = None, resolver=None):
        """
        初始化配额

        Args:
            arn: 配额 ARN
            name: 配额名称
            usage_metric: CloudWatch 使用量指标描述（可选）
            resolver: 使用率解析器（需提供 resolve(quota) 方法，可选）

        Raises:
            ArnFormatError: ARN 格式错误
        """
        parsed = parse_arn(arn)

        self.arn = arn
        self.name = name
        self.region = parsed.region
        self.account_id = parsed.account_id
        self.service_code = parsed.service_code
        self.quota_code = parsed.quota_code
        self.usage_metric = usage_metric
        self.resolver = resolver

        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._state = ResolutionState.UNRESOLVED
        self._utilization: Optional[int] = None
        self._error: Optional[Exception] = None

    @property
    def utilization(self) -> Optional[int]:
        """当前已解析的使用率（不触发远程查询）"""
        with self._lock:
            return self._utilization

    @property
    def state(self) -> ResolutionState:
        with self._lock:
            return self._state

    @property
    def error(self) -> Optional[Exception]:
        with self._lock:
            return self._error

    def resolve_utilization(self) -> Optional[int]:
        """
        解析使用率（懒加载，结果缓存）

        Returns:
            使用率百分比（0-100），无法解析时返回 None
        """
        if self.resolver is None:
            return self.memoize(lambda quota: None)
        return self.resolver.resolve(self)

    def memoize(self, compute: Callable[['Quota'], Optional[int]]) -> Optional[int]:
        """
        只执行一次 compute 并缓存结果

        第一个调用者负责计算，其他并发调用者等待同一个 Future。
        锁只在读写状态时持有，不会跨越远程调用。

        Args:
            compute: 计算函数，返回使用率；返回 None 表示该配额不支持解析；
                     抛出 ResolutionError 表示查询失败

        Returns:
            使用率百分比，未解析时返回 None
        """
        with self._lock:
            future = self._future
            owner = future is None
            if owner:
                future = self._future = Future()

        if not owner:
            return future.result()

        value: Optional[int] = None
        # compute 被 BaseException 打断时保持 FAILED，等待者也会被唤醒
        state = ResolutionState.FAILED
        error: Optional[Exception] = ResolutionError(self.quota_code, "使用率计算被中断")
        try:
            try:
                value = compute(self)
                state = ResolutionState.RESOLVED if value is not None else ResolutionState.UNSUPPORTED
                error = None
            except ResolutionError as e:
                error = e
            except Exception as e:
                logger.warning(f"配额 {self.quota_code} 使用率计算异常: {e}", exc_info=True)
                error = ResolutionError(self.quota_code, str(e))
        finally:
            with self._lock:
                self._state = state
                self._utilization = value
                self._error = error
            future.set_result(value)
        return value

    def __repr__(self) -> str:
        return (f"Quota(quota_code={self.quota_code!r}, service_code={self.service_code!r}, "
                f"region={self.region!r}, name={self.name!r}, utilization={self.utilization!r})")
