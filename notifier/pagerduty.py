# -*- coding: utf-8 -*-
"""
PagerDuty 告警模块

功能：
- 通过 PagerDuty Events API v2 发送 trigger / resolve 事件
- 去重键由 quota_code、region、account_id 组成，重复运行不会产生新的 incident
"""

import logging
from typing import Any, Dict

import httpx

from notifier.interfaces import Notifier
from quota.evaluator import BreachedQuota
from quota.exceptions import NotificationError

logger = logging.getLogger(__name__)

PAGERDUTY_EVENTS_URL = 'https://events.pagerduty.com/v2/enqueue'
PAGERDUTY_SUCCESS_STATUS = 202
DEFAULT_EVENT_SOURCE = 'service-quota-monitor'
DEFAULT_SEVERITY = 'warning'
DEFAULT_TIMEOUT = 10.0


def dedup_key(quota_code: str, region: str, account_id: str) -> str:
    """生成 PagerDuty 去重键"""
    return f"{quota_code}-{region}-{account_id}"


def trigger_action(utilization: int, threshold: int) -> str:
    """使用率达到阈值时为 trigger，否则为 resolve"""
    return 'trigger' if utilization >= threshold else 'resolve'


def service_quota_url(region: str, service_code: str, quota_code: str) -> str:
    """Service Quotas 控制台中该配额的页面地址"""
    return (f"https://{region}.console.aws.amazon.com/servicequotas/home/services/"
            f"{service_code}/quotas/{quota_code}")


class PagerDutyNotifier(Notifier):
    """
    PagerDuty Events API v2 客户端

    功能：
    - 构建事件 payload
    - 202 视为成功，其他状态码转换为 NotificationError
    """

    def __init__(self, routing_key: str, url: str = PAGERDUTY_EVENTS_URL, source: str = DEFAULT_EVENT_SOURCE,
                 severity: str = DEFAULT_SEVERITY, timeout: float = DEFAULT_TIMEOUT, client: httpx.Client = None):
        """
        初始化 PagerDuty 客户端

        Args:
            routing_key: PagerDuty integration routing key
            url: Events API 地址
            source: 事件来源标识
            severity: 事件级别
            timeout: 请求超时时间（秒）
            client: 已创建的 httpx 客户端（可选）
        """
        if not routing_key:
            raise ValueError("routing_key 不能为空")

        self.routing_key = routing_key
        self.url = url
        self.source = source
        self.severity = severity
        self.client = client or httpx.Client(
            timeout=timeout,
            headers={'Content-Type': 'application/json'},
        )

    def dedup_key(self, quota: BreachedQuota) -> str:
        return dedup_key(quota.quota_code, quota.region, quota.account_id)

    def build_event(self, quota: BreachedQuota) -> Dict[str, Any]:
        """构建 Events API v2 请求体"""
        utilization = quota.utilization
        return {
            'routing_key': self.routing_key,
            'event_action': trigger_action(utilization, quota.threshold),
            'dedup_key': self.dedup_key(quota),
            'payload': {
                'summary': (f"Service Quota Utilization {utilization}%: {quota.quota_code} - {quota.name} "
                            f"in {quota.account_id} - {quota.region}"),
                'source': self.source,
                'severity': self.severity,
                'custom_details': {
                    'arn': quota.arn,
                    'account_id': quota.account_id,
                    'service': quota.service_code,
                    'region': quota.region,
                    'quota_name': quota.name,
                    'quota_code': quota.quota_code,
                    'utilization_percentage': utilization,
                    'threshold': quota.threshold,
                    'service_quota_url': service_quota_url(quota.region, quota.service_code, quota.quota_code),
                },
            },
        }

    def notify(self, quota: BreachedQuota) -> int:
        event = self.build_event(quota)
        logger.debug(f"[告警] 发送 {event['event_action']} 事件: dedup_key={event['dedup_key']}")

        try:
            response = self.client.post(self.url, json=event)
        except httpx.HTTPError as e:
            raise NotificationError(None, str(e)) from e

        if response.status_code != PAGERDUTY_SUCCESS_STATUS:
            raise NotificationError(response.status_code, response.text)

        return response.status_code

    def get_notifier_type(self) -> str:
        return "pagerduty"

    def close(self):
        self.client.close()
