# -*- coding: utf-8 -*-
"""
缓存实现模块

功能：
- 线程安全的内存缓存（带 TTL）
- 用于缓存区域内的服务代码列表，避免定时审计时重复列举
"""

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class MemoryCache:
    """
    内存缓存实现

    功能：
    - 存储列举结果
    - 支持 TTL（Time To Live）
    - 过期条目在读取时清理
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._cache: Dict[str, Tuple[Any, float]] = {}  # key -> (value, expiration_time)
        self._lock = threading.RLock()
        self._clock = clock

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        """
        获取缓存值

        Returns:
            (value, exists) 元组，exists=True 表示缓存命中且未过期
        """
        with self._lock:
            if key not in self._cache:
                return None, False

            value, expiration_time = self._cache[key]
            if self._clock() > expiration_time:
                del self._cache[key]
                return None, False

            return value, True

    def set(self, key: str, value: Any, ttl: int):
        """设置缓存值，ttl 单位为秒"""
        with self._lock:
            self._cache[key] = (value, self._clock() + ttl)

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl: int) -> Any:
        """
        读取缓存，未命中时调用 loader 加载并写入

        loader 在锁外执行；loader 抛出的异常直接向上传递，不写入缓存。
        """
        value, exists = self.get(key)
        if exists:
            return value

        value = loader()
        if ttl > 0:
            self.set(key, value, ttl)
        return value

    def delete(self, key: str):
        with self._lock:
            self._cache.pop(key, None)

    def clear(self):
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
