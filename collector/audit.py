# -*- coding: utf-8 -*-
"""
审计流程模块

功能：
- 串联一次完整审计：区域发现 → 并发采集 → 阈值判定 → 告警
- 所有错误都转换为 RunReport 中的记录，审计总能完成
"""

import logging
import time
from typing import Callable, Optional

from cache.cache import MemoryCache
from collector.quota_result import ErrorKind, RunReport, UnitError
from config.loader import RunConfiguration
from notifier.dispatcher import AlertDispatcher
from notifier.interfaces import Notifier
from provider.aws.provider import QuotaCatalogBuilder
from provider.aws.service_quotas import ServiceQuotasClient
from provider.aws.usage_collector import UtilizationResolver
from provider.discovery import EC2RegionProvider, RegionProvider, StaticRegionProvider
from quota.evaluator import evaluate, recovered, unresolved
from quota.exceptions import EnumerationError
from quota.model import ResolutionState
from retry.retry import RetryPolicy
from scheduler.fanout import FanOutScheduler

logger = logging.getLogger(__name__)


def region_provider_for(config: RunConfiguration) -> RegionProvider:
    """根据配置选择区域来源"""
    if config.all_regions:
        return EC2RegionProvider(
            region=config.regions[0] if config.regions else 'us-east-1',
            profile=config.aws_profile,
            retry_policy=RetryPolicy(max_attempts=config.max_attempts),
        )
    return StaticRegionProvider(config.regions)


def default_builder_factory(config: RunConfiguration,
                            cache: MemoryCache = None) -> Callable[[str], QuotaCatalogBuilder]:
    """
    按区域创建 QuotaCatalogBuilder 的工厂函数

    每个区域一个 Service Quotas 客户端和一个使用率解析器。
    """
    retry_policy = RetryPolicy(max_attempts=config.max_attempts)

    def factory(region: str) -> QuotaCatalogBuilder:
        return QuotaCatalogBuilder(
            region=region,
            client=ServiceQuotasClient(region=region, profile=config.aws_profile, retry_policy=retry_policy),
            resolver=UtilizationResolver(region=region, profile=config.aws_profile, retry_policy=retry_policy),
            cache=cache,
            cache_ttl=config.service_cache_ttl,
        )

    return factory


def run_audit(config: RunConfiguration, notifier: Optional[Notifier] = None,
              region_provider: RegionProvider = None,
              builder_factory: Callable[[str], QuotaCatalogBuilder] = None,
              cache: MemoryCache = None) -> RunReport:
    """
    执行一次配额审计

    Args:
        config: 运行配置
        notifier: 告警发送器（可选，不提供则不发送告警）
        region_provider: 区域来源（可选，默认按配置选择）
        builder_factory: 目录构建器工厂（可选，默认使用 boto3 客户端）
        cache: 服务列表缓存（可选，定时审计时跨轮次复用）

    Returns:
        RunReport
    """
    report = RunReport(threshold=config.threshold, notifications_enabled=notifier is not None)
    logger.info(f"[审计] 开始: threshold={config.threshold}%, parallelism={config.per_region_parallelism}")

    region_provider = region_provider or region_provider_for(config)
    try:
        regions = region_provider.get_regions()
    except EnumerationError as e:
        logger.error(f"[审计] 区域列举失败 ({region_provider.get_provider_type()}): {e}", exc_info=True)
        report.unit_errors.append(UnitError(ErrorKind.ENUMERATION, e.region, None, str(e)))
        report.finished_at = time.time()
        return report
    except Exception as e:
        logger.error(f"[审计] 区域发现异常 ({region_provider.get_provider_type()}): {e}", exc_info=True)
        report.unit_errors.append(UnitError(ErrorKind.ENUMERATION, '', None, str(e)))
        report.finished_at = time.time()
        return report

    report.regions = list(regions)
    logger.info(f"[审计] 区域 ({region_provider.get_provider_type()}): {', '.join(regions)}")

    scheduler = FanOutScheduler(
        builder_factory or default_builder_factory(config, cache),
        eager_resolution=config.eager_resolution,
    )
    catalog = scheduler.run(regions, config.per_region_parallelism)

    report.quotas = catalog.quotas
    report.unit_errors.extend(catalog.errors)
    report.services_scanned = catalog.services_scanned
    report.quotas_scanned = len(catalog.quotas)

    report.breached = evaluate(catalog.quotas, config.threshold, config.ignored_quota_codes)
    if config.notify_resolved:
        report.recovered = recovered(catalog.quotas, config.threshold, config.ignored_quota_codes)
    report.unresolved = unresolved(catalog.quotas)
    report.unsupported_count = sum(1 for q in catalog.quotas if q.state == ResolutionState.UNSUPPORTED)

    for quota in report.unresolved:
        logger.warning(f"[审计] 配额 {quota.quota_code} ({quota.service_code}, {quota.region}) 使用率未解析: {quota.error}")

    if notifier is not None:
        report.notifications = AlertDispatcher(notifier).dispatch(report.breached, report.recovered)
    elif report.breached:
        logger.info("[审计] 未配置告警接口，跳过告警发送")

    report.finished_at = time.time()
    logger.info(f"[审计] 完成: {report.summary()}")
    return report
