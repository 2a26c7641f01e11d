# -*- coding: utf-8 -*-
"""
定时任务实现模块

功能：
- 定时调用审计函数刷新数据
- 不直接操作 Prometheus metrics
- 不关心区域、服务细节
- 只负责"什么时候审计"
"""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class QuotaScheduler:
    """
    配额审计定时任务调度器

    职责：
    1. 定时调用"已有的审计函数"
    2. 单次审计失败只记录日志，不退出循环
    3. 同一时刻只执行一次审计
    """

    def __init__(self, audit_func: Callable, interval: int = 3600, run_immediately: bool = True):
        """
        初始化定时任务调度器

        Args:
            audit_func: 执行一次审计的函数
            interval: 审计间隔（秒），默认 3600（1 小时）
            run_immediately: 启动后是否立即执行一次
        """
        if interval <= 0:
            raise ValueError(f"interval 必须为正数: {interval}")

        self.audit_func = audit_func
        self.interval = interval
        self.run_immediately = run_immediately

        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._last_run_at: Optional[float] = None
        self._last_error: Optional[str] = None
        self._run_count = 0

        logger.info(f"QuotaScheduler 初始化完成: interval={interval}s")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    @property
    def busy(self) -> bool:
        """是否有审计正在进行"""
        return self._run_lock.locked()

    def start(self):
        """启动后台审计线程"""
        if self.running:
            logger.warning("定时任务已在运行")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._audit_loop,
            name="AuditRefreshThread",
            daemon=True
        )
        self._thread.start()
        logger.info("定时任务调度器已启动")

    def stop(self):
        """停止定时任务"""
        if self._thread is None:
            return

        logger.info("停止定时任务调度器...")
        self._stop_event.set()

        # 等待线程结束（最多等待 5 秒）
        if self._thread.is_alive():
            self._thread.join(timeout=5)

        logger.info("定时任务调度器已停止")

    def run_once(self) -> bool:
        """
        立即执行一次审计

        Returns:
            True 表示执行完成；已有审计在进行中或审计异常时返回 False
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("[Scheduler] 审计正在进行中，跳过本次触发")
            return False

        try:
            logger.info("[Scheduler] audit triggered")
            self.audit_func()
            self._last_error = None
            logger.info("[Scheduler] audit completed")
            return True
        except Exception as e:
            # 捕获异常，打印日志，不退出线程
            self._last_error = str(e)
            logger.error(f"[Scheduler] 审计异常: {e}", exc_info=True)
            return False
        finally:
            self._last_run_at = time.time()
            self._run_count += 1
            self._run_lock.release()

    def _audit_loop(self):
        """审计循环，每 interval 秒执行一次 audit_func"""
        logger.info(f"[Scheduler] 审计循环启动，间隔: {self.interval} 秒")

        if self.run_immediately:
            self.run_once()

        while not self._stop_event.wait(self.interval):
            self.run_once()

        logger.info("[Scheduler] 审计循环已退出")

    def get_status(self) -> dict:
        """
        获取定时任务状态

        Returns:
            状态信息字典
        """
        return {
            'running': self.running,
            'interval': self.interval,
            'thread_alive': self._thread.is_alive() if self._thread else False,
            'run_count': self._run_count,
            'last_run_at': self._last_run_at,
            'last_error': self._last_error,
        }
