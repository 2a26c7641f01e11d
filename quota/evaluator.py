# -*- coding: utf-8 -*-
"""
配额超阈值判定模块

功能：
- 从汇总后的配额目录中筛选使用率超过阈值的配额
- 可选地筛选已恢复到阈值以下的配额（用于发送 resolve 事件）
- 单独列出使用率查询失败的配额
"""

from dataclasses import dataclass
from typing import AbstractSet, Iterable, List

from quota.model import Quota, ResolutionState


@dataclass(frozen=True)
class BreachedQuota:
    """超过阈值（或已恢复）的配额快照"""
    quota: Quota
    utilization: int
    threshold: int

    @property
    def arn(self) -> str:
        return self.quota.arn

    @property
    def name(self) -> str:
        return self.quota.name

    @property
    def region(self) -> str:
        return self.quota.region

    @property
    def account_id(self) -> str:
        return self.quota.account_id

    @property
    def service_code(self) -> str:
        return self.quota.service_code

    @property
    def quota_code(self) -> str:
        return self.quota.quota_code

    @property
    def is_breached(self) -> bool:
        return self.utilization > self.threshold


def is_breached(quota: Quota, threshold: int, ignored_codes: AbstractSet[str]) -> bool:
    """
    判断配额是否超过阈值

    条件：使用率已解析、严格大于阈值、且 quota_code 不在忽略列表中
    """
    utilization = quota.utilization
    if utilization is None:
        return False
    return utilization > threshold and quota.quota_code not in ignored_codes


def evaluate(catalog: Iterable[Quota], threshold: int, ignored_codes: AbstractSet[str]) -> List[BreachedQuota]:
    """
    筛选超过阈值的配额

    未解析的配额会在这里按需解析（已解析的直接读取缓存值）。

    Args:
        catalog: 配额目录
        threshold: 告警阈值（0-100）
        ignored_codes: 忽略的 quota_code 集合

    Returns:
        BreachedQuota 列表
    """
    breached = []
    for quota in catalog:
        quota.resolve_utilization()
        if is_breached(quota, threshold, ignored_codes):
            breached.append(BreachedQuota(quota=quota, utilization=quota.utilization, threshold=threshold))
    return breached


def recovered(catalog: Iterable[Quota], threshold: int, ignored_codes: AbstractSet[str]) -> List[BreachedQuota]:
    """筛选使用率低于阈值的配额（resolve 模式）"""
    result = []
    for quota in catalog:
        if quota.quota_code in ignored_codes:
            continue
        utilization = quota.resolve_utilization()
        if utilization is not None and utilization < threshold:
            result.append(BreachedQuota(quota=quota, utilization=utilization, threshold=threshold))
    return result


def unresolved(catalog: Iterable[Quota]) -> List[Quota]:
    """使用率查询失败的配额（不包括不支持解析的配额）"""
    return [quota for quota in catalog if quota.state == ResolutionState.FAILED]
