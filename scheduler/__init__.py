# -*- coding: utf-8 -*-
"""
调度模块

功能：
- FanOutScheduler：一次审计内按区域、按服务并发采集配额
- QuotaScheduler：在后台线程中定时执行审计，不阻塞主程序
"""

from scheduler.fanout import AggregatedCatalog, FanOutScheduler, UnitResult
from scheduler.scheduler import QuotaScheduler

__all__ = ['AggregatedCatalog', 'FanOutScheduler', 'UnitResult', 'QuotaScheduler']
