# -*- coding: utf-8 -*-
"""
审计结果数据结构

功能：
- 定义单元错误（UnitError）和告警发送结果（NotificationOutcome）
- RunReport 汇总一次审计的超阈值配额、查询失败配额和错误统计
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from quota.evaluator import BreachedQuota
from quota.model import Quota


class ErrorKind(Enum):
    """单元错误类型"""
    IDENTIFIER = "identifier"      # ARN 格式错误，跳过单条记录
    ENUMERATION = "enumeration"    # 服务或配额列举失败，跳过单元
    RESOLUTION = "resolution"      # 使用率查询失败
    NOTIFICATION = "notification"  # 告警发送失败


@dataclass(frozen=True)
class UnitError:
    """单元边界捕获的错误"""
    kind: ErrorKind
    region: str
    service_code: Optional[str]
    message: str


class NotificationStatus(Enum):
    """告警发送状态"""
    SENT = "sent"        # 告警接口已接收
    FAILED = "failed"    # 发送失败
    SKIPPED = "skipped"  # 使用率未解析，未发送


@dataclass(frozen=True)
class NotificationOutcome:
    """单个配额的告警发送结果"""
    quota_code: str
    region: str
    account_id: str
    dedup_key: str
    action: str
    status: NotificationStatus
    status_code: Optional[int] = None
    error: Optional[str] = None

    def is_success(self) -> bool:
        return self.status == NotificationStatus.SENT

    def is_failed(self) -> bool:
        return self.status == NotificationStatus.FAILED


@dataclass
class RunReport:
    """一次审计的完整结果"""
    threshold: int
    regions: List[str] = field(default_factory=list)
    breached: List[BreachedQuota] = field(default_factory=list)
    recovered: List[BreachedQuota] = field(default_factory=list)
    unresolved: List[Quota] = field(default_factory=list)   # 使用率查询失败的配额
    unit_errors: List[UnitError] = field(default_factory=list)
    notifications: List[NotificationOutcome] = field(default_factory=list)
    notifications_enabled: bool = False
    services_scanned: int = 0
    quotas_scanned: int = 0
    unsupported_count: int = 0
    quotas: List[Quota] = field(default_factory=list)       # 本次审计的完整配额目录
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    @property
    def duration(self) -> float:
        if self.finished_at is None:
            return 0.0
        return max(0.0, self.finished_at - self.started_at)

    def errors_of(self, kind: ErrorKind) -> List[UnitError]:
        return [e for e in self.unit_errors if e.kind == kind]

    @property
    def failed_notifications(self) -> List[NotificationOutcome]:
        return [n for n in self.notifications if n.is_failed()]

    def has_partial_failures(self) -> bool:
        """是否存在列举失败、查询失败或告警发送失败"""
        return bool(self.unit_errors or self.unresolved or self.failed_notifications)

    def summary(self) -> Dict[str, Any]:
        """
        生成审计摘要

        Returns:
            各类计数组成的字典（可直接序列化为 JSON）
        """
        return {
            'threshold': self.threshold,
            'regions': list(self.regions),
            'services_scanned': self.services_scanned,
            'quotas_scanned': self.quotas_scanned,
            'breached': len(self.breached),
            'recovered': len(self.recovered),
            'unresolved': len(self.unresolved),
            'unsupported': self.unsupported_count,
            'identifier_errors': len(self.errors_of(ErrorKind.IDENTIFIER)),
            'enumeration_errors': len(self.errors_of(ErrorKind.ENUMERATION)),
            'notifications_enabled': self.notifications_enabled,
            'notifications_sent': sum(1 for n in self.notifications if n.is_success()),
            'notification_errors': len(self.failed_notifications),
            'duration_seconds': round(self.duration, 3),
        }

    def exit_code(self) -> int:
        """
        进程退出码

        0: 无超阈值配额且无错误
        1: 存在超阈值配额
        3: 无超阈值配额，但存在部分失败
        """
        if self.breached:
            return 1
        if self.has_partial_failures():
            return 3
        return 0
