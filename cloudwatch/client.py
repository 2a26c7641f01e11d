# -*- coding: utf-8 -*-
"""
AWS CloudWatch 指标查询模块

功能：
- 根据配额的 UsageMetric 构建 GetMetricData 查询
- 通过 SERVICE_QUOTA() 表达式直接计算使用率百分比
- 汇总所有分页的数据点，取最大值
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from provider.aws.session import build_client
from quota.exceptions import MissingMetricDataError, ResolutionError
from quota.model import UsageMetric
from retry.retry import RetryPolicy

logger = logging.getLogger(__name__)

QUERY_WINDOW = timedelta(hours=1)     # 查询区间
AGGREGATION_DELAY = timedelta(minutes=10)  # CloudWatch 聚合延迟
METRIC_PERIOD = 60                    # 统计周期（秒）

USAGE_QUERY_ID = 'usage_data'
UTILIZATION_QUERY_ID = 'utilization'
UTILIZATION_EXPRESSION = f'({USAGE_QUERY_ID}/SERVICE_QUOTA({USAGE_QUERY_ID}))*100'


def query_window(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    计算查询时间区间

    结束时间对齐到整点（CloudWatch 对整点对齐的查询更快），
    并预留聚合延迟，开始时间为结束时间前 1 小时。

    Returns:
        (start_time, end_time) 元组（UTC）
    """
    now = now or datetime.now(timezone.utc)
    end_time = (now - AGGREGATION_DELAY).replace(minute=0, second=0, microsecond=0)
    return end_time - QUERY_WINDOW, end_time


def to_percentage(value: float) -> int:
    """截断为 0-100 的整数"""
    return max(0, min(100, int(value)))


def max_value(metric_data_results: Iterable[Dict]) -> Optional[float]:
    """所有结果中的最大数据点，无数据返回 None"""
    values = [value for result in metric_data_results for value in result.get('Values', [])]
    return max(values) if values else None


class CloudWatchClient:
    """
    CloudWatch 指标查询客户端

    功能：
    - 查询配额使用量与配额上限的比值
    - 无数据时抛出 MissingMetricDataError，API 异常时抛出 ResolutionError
    """

    def __init__(self, region: str = 'us-east-1', profile: str = None,
                 retry_policy: RetryPolicy = None, client=None):
        """
        初始化 CloudWatch 客户端

        Args:
            region: AWS 区域
            profile: AWS profile（可选）
            retry_policy: 重试策略（可选）
            client: 已创建的 boto3 客户端（可选，主要用于测试）
        """
        self.region = region
        self.client = client or build_client('cloudwatch', region, profile, retry_policy)

    def build_queries(self, usage_metric: UsageMetric) -> List[Dict]:
        """构建 GetMetricData 查询：原始使用量 + 使用率表达式（只返回后者）"""
        dimensions = [
            {'Name': k, 'Value': v}
            for k, v in usage_metric.dimensions.items()
        ]
        return [
            {
                'Id': USAGE_QUERY_ID,
                'MetricStat': {
                    'Metric': {
                        'Namespace': usage_metric.namespace,
                        'MetricName': usage_metric.metric_name,
                        'Dimensions': dimensions,
                    },
                    'Period': METRIC_PERIOD,
                    'Stat': usage_metric.statistic,
                },
                'ReturnData': False,
            },
            {
                'Id': UTILIZATION_QUERY_ID,
                'Expression': UTILIZATION_EXPRESSION,
                'ReturnData': True,
            },
        ]

    def service_quota_utilization(self, usage_metric: UsageMetric, quota_code: str,
                                  now: Optional[datetime] = None) -> int:
        """
        查询配额使用率

        Args:
            usage_metric: 使用量指标描述
            quota_code: 配额代码（用于日志和错误信息）
            now: 当前时间（可选，用于测试）

        Returns:
            使用率百分比（0-100）

        Raises:
            MissingMetricDataError: 查询区间内没有数据点
            ResolutionError: CloudWatch API 调用异常
        """
        start_time, end_time = query_window(now)
        results = []
        try:
            paginator = self.client.get_paginator('get_metric_data')
            for page in paginator.paginate(
                MetricDataQueries=self.build_queries(usage_metric),
                StartTime=start_time,
                EndTime=end_time,
            ):
                results.extend(page.get('MetricDataResults', []))
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"CloudWatch API 调用异常 {usage_metric.namespace}/{usage_metric.metric_name}: {e}")
            raise ResolutionError(quota_code, str(e)) from e

        value = max_value(results)
        if value is None:
            logger.debug(f"CloudWatch 指标无数据: {quota_code} (dimensions: {usage_metric.dimensions})")
            raise MissingMetricDataError(quota_code)

        utilization = to_percentage(value)
        logger.debug(f"CloudWatch 使用率: {quota_code} = {utilization}%")
        return utilization
