# -*- coding: utf-8 -*-
"""
告警分发模块

功能：
- 对每个超阈值（或已恢复）的配额调用一次 Notifier
- 单个配额发送失败不影响其他配额，结果统一收集后汇报
"""

import logging
from typing import Iterable, List

from collector.quota_result import NotificationOutcome, NotificationStatus
from notifier.interfaces import Notifier
from notifier.pagerduty import trigger_action
from quota.evaluator import BreachedQuota
from quota.exceptions import NotificationError

logger = logging.getLogger(__name__)


class AlertDispatcher:
    """告警分发器"""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    def dispatch(self, breached: Iterable[BreachedQuota],
                 recovered: Iterable[BreachedQuota] = ()) -> List[NotificationOutcome]:
        """
        发送告警

        Args:
            breached: 超阈值配额（trigger 事件）
            recovered: 已恢复配额（resolve 事件，仅 resolve 模式下提供）

        Returns:
            每个配额的发送结果，顺序与输入一致
        """
        outcomes = [self.send(quota) for quota in list(breached) + list(recovered)]

        failed = sum(1 for o in outcomes if o.is_failed())
        logger.info(f"[告警] 共 {len(outcomes)} 个事件，失败 {failed} 个 ({self.notifier.get_notifier_type()})")
        return outcomes

    def send(self, quota: BreachedQuota) -> NotificationOutcome:
        """发送单个配额的告警，错误转换为 NotificationOutcome"""
        key = self.notifier.dedup_key(quota)

        if quota.utilization is None:
            logger.warning(f"[告警] 配额 {quota.quota_code} ({quota.region}) 使用率未解析，跳过")
            return NotificationOutcome(
                quota_code=quota.quota_code, region=quota.region, account_id=quota.account_id,
                dedup_key=key, action='', status=NotificationStatus.SKIPPED,
            )

        action = trigger_action(quota.utilization, quota.threshold)
        try:
            status_code = self.notifier.notify(quota)
        except NotificationError as e:
            logger.error(f"[告警] 配额 {quota.quota_code} ({quota.region}) 发送失败: {e}")
            return NotificationOutcome(
                quota_code=quota.quota_code, region=quota.region, account_id=quota.account_id,
                dedup_key=key, action=action, status=NotificationStatus.FAILED,
                status_code=e.status_code, error=e.body,
            )
        except Exception as e:
            logger.error(f"[告警] 配额 {quota.quota_code} ({quota.region}) 发送异常: {e}", exc_info=True)
            return NotificationOutcome(
                quota_code=quota.quota_code, region=quota.region, account_id=quota.account_id,
                dedup_key=key, action=action, status=NotificationStatus.FAILED, error=str(e),
            )

        logger.info(f"[告警] 配额 {quota.quota_code} ({quota.region}) {action} 事件已发送")
        return NotificationOutcome(
            quota_code=quota.quota_code, region=quota.region, account_id=quota.account_id,
            dedup_key=key, action=action, status=NotificationStatus.SENT, status_code=status_code,
        )
