# -*- coding: utf-8 -*-
"""
Provider Discovery 模块

功能：
- 抽象 RegionProvider 接口
- 提供静态区域和 EC2 区域发现两种实现
"""

from .interfaces import RegionProvider
from .region_provider import EC2RegionProvider, StaticRegionProvider

__all__ = [
    'RegionProvider',
    'StaticRegionProvider',
    'EC2RegionProvider',
]
