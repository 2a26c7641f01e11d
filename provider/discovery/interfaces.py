# -*- coding: utf-8 -*-
"""
Provider Discovery 接口定义

功能：
- 定义 RegionProvider 接口
- 审计流程只依赖接口，不关心区域来自配置还是 EC2 API
"""

from abc import ABC, abstractmethod
from typing import List


class RegionProvider(ABC):
    """
    区域发现接口

    功能：
    - 提供本次审计要扫描的区域列表
    """

    @abstractmethod
    def get_regions(self) -> List[str]:
        """
        获取区域列表

        Returns:
            区域列表（去重，保持顺序）

        Raises:
            EnumerationError: 区域列举失败
        """
        pass

    @abstractmethod
    def get_provider_type(self) -> str:
        """
        获取 Provider 类型（用于日志和标识）

        Returns:
            Provider 类型名称，如 "static", "ec2"
        """
        pass
