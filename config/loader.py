# -*- coding: utf-8 -*-
"""
审计配置加载模块

功能：
- 定义一次审计的运行配置（RunConfiguration）
- 从 YAML 文件加载配置，再由命令行参数覆盖
- 读取失败时给出明确错误
"""

import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet, Optional, Tuple

import yaml

from quota.exceptions import ConfigError

DEFAULT_THRESHOLD = 75
DEFAULT_REGIONS = ('us-east-1',)
DEFAULT_PER_REGION_PARALLELISM = 5
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_SERVICE_CACHE_TTL = 86400  # 24 小时


@dataclass(frozen=True)
class RunConfiguration:
    """一次审计的运行配置"""
    threshold: int = DEFAULT_THRESHOLD                          # 告警阈值（0-100）
    regions: Tuple[str, ...] = DEFAULT_REGIONS                  # 扫描的区域
    all_regions: bool = False                                   # 为 True 时通过 EC2 获取全部区域
    ignored_quota_codes: FrozenSet[str] = field(default_factory=frozenset)
    per_region_parallelism: int = DEFAULT_PER_REGION_PARALLELISM
    eager_resolution: bool = True                               # 列举后立即并发解析使用率
    notify_resolved: bool = False                               # 是否为已恢复的配额发送 resolve 事件
    aws_profile: Optional[str] = None
    max_attempts: int = DEFAULT_MAX_ATTEMPTS                    # botocore 重试次数
    service_cache_ttl: int = DEFAULT_SERVICE_CACHE_TTL          # 服务列表缓存时间（秒）


_FIELD_NAMES = {f.name for f in fields(RunConfiguration)}


def _normalize(values: Dict[str, Any]) -> Dict[str, Any]:
    """把 YAML / 命令行中的列表转换为配置使用的不可变类型"""
    result = dict(values)
    if 'regions' in result and result['regions'] is not None:
        regions = result['regions']
        if isinstance(regions, str):
            regions = [regions]
        result['regions'] = tuple(regions)
    if 'ignored_quota_codes' in result and result['ignored_quota_codes'] is not None:
        codes = result['ignored_quota_codes']
        if isinstance(codes, str):
            codes = [codes]
        result['ignored_quota_codes'] = frozenset(codes)
    return result


def load_run_config(config_path: str) -> RunConfiguration:
    """
    从 YAML 文件加载运行配置

    Args:
        config_path: 配置文件路径（如 'config/audit.yaml'）

    Returns:
        RunConfiguration 对象，文件中未出现的字段使用默认值

    Raises:
        FileNotFoundError: 文件不存在
        ConfigError: YAML 解析失败或配置格式错误
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"配置文件不存在: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML 解析失败: {e}") from e

    if data is None:
        return RunConfiguration()

    if not isinstance(data, dict):
        raise ConfigError("配置格式错误: 顶层必须是字典类型")

    unknown = sorted(set(data) - _FIELD_NAMES)
    if unknown:
        raise ConfigError(f"配置格式错误: 未知字段 {', '.join(unknown)}")

    for key in ('regions', 'ignored_quota_codes'):
        if key in data and not isinstance(data[key], (list, str)):
            raise ConfigError(f"配置格式错误: '{key}' 必须是列表类型")

    return RunConfiguration(**_normalize(data))


def apply_overrides(config: RunConfiguration, **overrides) -> RunConfiguration:
    """
    用命令行参数覆盖配置

    值为 None 的参数表示未指定，保持原配置不变。

    Raises:
        ConfigError: 出现未知字段
    """
    unknown = sorted(set(overrides) - _FIELD_NAMES)
    if unknown:
        raise ConfigError(f"未知配置字段: {', '.join(unknown)}")

    values = {k: v for k, v in overrides.items() if v is not None}
    if not values:
        return config
    return replace(config, **_normalize(values))
