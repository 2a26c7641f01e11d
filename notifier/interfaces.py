# -*- coding: utf-8 -*-
"""
告警接口定义

功能：
- 定义 Notifier 接口
- AlertDispatcher 只依赖接口，不关心告警发往哪里
"""

from abc import ABC, abstractmethod

from quota.evaluator import BreachedQuota


class Notifier(ABC):
    """
    告警发送接口

    功能：
    - 每次调用对一个配额发起恰好一次外部请求
    """

    @abstractmethod
    def dedup_key(self, quota: BreachedQuota) -> str:
        """
        生成去重键（同一配额多次运行结果相同）

        Returns:
            去重键字符串
        """
        pass

    @abstractmethod
    def notify(self, quota: BreachedQuota) -> int:
        """
        发送告警

        Returns:
            告警接口返回的 HTTP 状态码

        Raises:
            NotificationError: 发送失败或接口返回非成功状态
        """
        pass

    @abstractmethod
    def get_notifier_type(self) -> str:
        """
        获取 Notifier 类型（用于日志和标识）

        Returns:
            Notifier 类型名称，如 "pagerduty"
        """
        pass

    def close(self):
        """释放底层连接（默认无需释放）"""
        pass
