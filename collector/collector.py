# -*- coding: utf-8 -*-
"""
Prometheus Collector 实现模块

功能：
- 将审计结果（RunReport）转换为 Prometheus 指标
- 提供指标数据供 /metrics 端点使用
"""

import logging
import threading
from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST

from collector.quota_result import ErrorKind, RunReport
from quota.model import Quota

logger = logging.getLogger(__name__)

QUOTA_LABELS = ['region', 'account_id', 'service', 'quota_code', 'quota_name']


def _quota_labels(quota: Quota) -> Dict[str, str]:
    return {
        'region': quota.region,
        'account_id': quota.account_id,
        'service': quota.service_code,
        'quota_code': quota.quota_code,
        'quota_name': quota.name,
    }


class QuotaCollector:
    """
    配额指标收集器

    功能：
    - 使用独立的 CollectorRegistry，不污染全局默认 registry
    - 每次审计结束后整体替换配额指标（上一轮的标签组合会被清除）
    - 错误计数和审计耗时跨轮次累积
    """

    def __init__(self, registry: CollectorRegistry = None):
        """初始化配额指标收集器"""
        self.registry = registry or CollectorRegistry()
        self._lock = threading.Lock()
        self.last_report: Optional[RunReport] = None

        # 1. service_quota_utilization_percent: 配额使用百分比
        self.utilization_percent = Gauge(
            'service_quota_utilization_percent',
            'Service quota utilization percentage (0-100)',
            QUOTA_LABELS,
            registry=self.registry
        )

        # 2. service_quota_breached: 是否超过阈值（1/0）
        self.breached = Gauge(
            'service_quota_breached',
            'Whether the service quota utilization is above the alert threshold',
            QUOTA_LABELS,
            registry=self.registry
        )

        # 审计自身指标
        self.audit_errors_total = Counter(
            'service_quota_audit_errors',
            'Total number of audit errors',
            ['kind'],
            registry=self.registry
        )

        self.audit_duration_seconds = Histogram(
            'service_quota_audit_duration_seconds',
            'Duration of a full quota audit in seconds',
            buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0],
            registry=self.registry
        )

        self.last_audit_timestamp = Gauge(
            'service_quota_last_audit_timestamp_seconds',
            'Unix timestamp of the last completed audit',
            registry=self.registry
        )

    def update(self, report: RunReport):
        """
        用一次审计结果刷新指标

        Args:
            report: 审计结果
        """
        breached_keys = {(b.region, b.account_id, b.quota_code) for b in report.breached}

        with self._lock:
            self.utilization_percent.clear()
            self.breached.clear()

            for quota in report.quotas:
                utilization = quota.utilization
                if utilization is None:
                    continue
                labels = _quota_labels(quota)
                self.utilization_percent.labels(**labels).set(utilization)
                key = (quota.region, quota.account_id, quota.quota_code)
                self.breached.labels(**labels).set(1 if key in breached_keys else 0)

            for error in report.unit_errors:
                self.audit_errors_total.labels(kind=error.kind.value).inc()
            if report.unresolved:
                self.audit_errors_total.labels(kind=ErrorKind.RESOLUTION.value).inc(len(report.unresolved))
            if report.failed_notifications:
                self.audit_errors_total.labels(kind=ErrorKind.NOTIFICATION.value).inc(
                    len(report.failed_notifications))

            self.audit_duration_seconds.observe(report.duration)
            if report.finished_at is not None:
                self.last_audit_timestamp.set(report.finished_at)

            self.last_report = report

        logger.info(f"[指标] 已更新: {len(report.quotas)} 个配额, {len(report.breached)} 个超阈值")

    def get_metrics(self) -> str:
        """
        获取 Prometheus 格式的指标数据

        Returns:
            Prometheus text format 字符串
        """
        return generate_latest(self.registry).decode('utf-8')

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def get_summary(self) -> Optional[Dict]:
        """最近一次审计的摘要，尚未审计时返回 None"""
        with self._lock:
            report = self.last_report
        return report.summary() if report else None
