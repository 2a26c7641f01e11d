# -*- coding: utf-8 -*-
"""
审计结果与 Prometheus Collector 模块

功能：
- 定义审计结果数据结构（RunReport）
- 将审计结果转换为 Prometheus 指标
- run_audit 位于 collector.audit，负责串联一次完整审计
"""

from .collector import QuotaCollector
from .quota_result import ErrorKind, NotificationOutcome, NotificationStatus, RunReport, UnitError
