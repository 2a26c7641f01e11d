# -*- coding: utf-8 -*-
"""
告警模块

功能：
- 抽象 Notifier 接口
- 提供 PagerDuty Events API v2 实现
- AlertDispatcher 逐个发送并收集结果
"""

from .interfaces import Notifier
from .pagerduty import PagerDutyNotifier, dedup_key, trigger_action
from .dispatcher import AlertDispatcher

__all__ = [
    'Notifier',
    'PagerDutyNotifier',
    'AlertDispatcher',
    'dedup_key',
    'trigger_action',
]
