# -*- coding: utf-8 -*-
"""
配置验证模块

功能：
- 验证运行配置的完整性和正确性
- 验证字段格式和取值范围
"""

from typing import Optional, Tuple

from config.loader import RunConfiguration


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: RunConfiguration) -> Tuple[bool, Optional[str]]:
    """
    验证配置对象

    Args:
        config: 配置对象

    Returns:
        (is_valid, error_message) 元组
    """
    if not _is_int(config.threshold) or not 0 <= config.threshold <= 100:
        return False, f"threshold 必须是 0-100 之间的整数: {config.threshold!r}"

    if not config.all_regions:
        if not config.regions:
            return False, "regions 不能为空（或使用 --all-regions）"
        for region in config.regions:
            if not isinstance(region, str) or not region.strip():
                return False, f"无效的 region: {region!r}"

    for code in config.ignored_quota_codes:
        if not isinstance(code, str) or not code.strip():
            return False, f"无效的 quota_code: {code!r}"

    if not _is_int(config.per_region_parallelism) or config.per_region_parallelism < 1:
        return False, f"per_region_parallelism 必须是正整数: {config.per_region_parallelism!r}"

    if not _is_int(config.max_attempts) or config.max_attempts < 1:
        return False, f"max_attempts 必须是正整数: {config.max_attempts!r}"

    if not _is_int(config.service_cache_ttl) or config.service_cache_ttl < 0:
        return False, f"service_cache_ttl 必须是非负整数: {config.service_cache_ttl!r}"

    if config.aws_profile is not None and not isinstance(config.aws_profile, str):
        return False, f"aws_profile 必须是字符串: {config.aws_profile!r}"

    return True, None
