# -*- coding: utf-8 -*-
"""
并发采集调度模块

功能：
- 按区域顺序列举服务，再为每个服务提交一个并发单元
- 每个区域使用独立线程池限制同时进行的单元数量，避免触发 API 限流；各区域之间并行
- 单元失败只影响自身，所有单元完成后返回汇总目录
"""

import logging
from contextlib import ExitStack
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List

from collector.quota_result import ErrorKind, UnitError
from config.loader import DEFAULT_PER_REGION_PARALLELISM
from provider.aws.provider import QuotaCatalogBuilder
from quota.exceptions import EnumerationError
from quota.model import Quota

logger = logging.getLogger(__name__)


@dataclass
class UnitResult:
    """单个服务单元的结果"""
    region: str
    service_code: str
    quotas: List[Quota] = field(default_factory=list)
    errors: List[UnitError] = field(default_factory=list)


@dataclass
class AggregatedCatalog:
    """所有区域、所有服务汇总后的配额目录（顺序不保证）"""
    quotas: List[Quota] = field(default_factory=list)
    errors: List[UnitError] = field(default_factory=list)
    services_scanned: int = 0

    def merge(self, result: UnitResult):
        self.quotas.extend(result.quotas)
        self.errors.extend(result.errors)
        self.services_scanned += 1

    def errors_of(self, kind: ErrorKind) -> List[UnitError]:
        return [e for e in self.errors if e.kind == kind]


class FanOutScheduler:
    """
    配额目录并发采集调度器

    职责：
    1. 每个区域顺序列举服务（开销小，不并发）
    2. 每个服务一个单元：列举配额，可选地立即解析使用率
    3. 等待所有单元完成（不丢弃任何单元）后返回结果
    """

    def __init__(self, builder_factory: Callable[[str], QuotaCatalogBuilder], eager_resolution: bool = True):
        """
        初始化调度器

        Args:
            builder_factory: 按区域创建 QuotaCatalogBuilder 的函数
            eager_resolution: 列举配额后是否立即在单元内解析使用率
        """
        self.builder_factory = builder_factory
        self.eager_resolution = eager_resolution

    def run(self, regions: Iterable[str], per_region_parallelism: int = DEFAULT_PER_REGION_PARALLELISM) -> AggregatedCatalog:
        """
        采集所有区域的配额目录

        Args:
            regions: 区域列表
            per_region_parallelism: 每个区域同时进行的单元数量上限

        Returns:
            AggregatedCatalog
        """
        if per_region_parallelism < 1:
            raise ValueError(f"per_region_parallelism 必须为正整数: {per_region_parallelism}")

        regions = list(regions)
        catalog = AggregatedCatalog()

        # 区域 -> (builder, 服务列表)
        plan: Dict[str, tuple] = {}
        for region in regions:
            try:
                builder = self.builder_factory(region)
                services = builder.list_services()
            except EnumerationError as e:
                logger.error(f"[采集] 区域 {region} 服务列举失败: {e}", exc_info=True)
                catalog.errors.append(UnitError(ErrorKind.ENUMERATION, region, None, str(e)))
                continue
            except Exception as e:
                logger.error(f"[采集] 区域 {region} 初始化失败: {e}", exc_info=True)
                catalog.errors.append(UnitError(ErrorKind.ENUMERATION, region, None, str(e)))
                continue
            logger.info(f"[采集] 区域 {region}: {len(services)} 个服务")
            plan[region] = (builder, services)

        total_units = sum(len(services) for _, services in plan.values())
        if total_units == 0:
            return catalog

        # 每个区域一个线程池，池大小即该区域同时进行的单元数上限；各区域并行推进
        with ExitStack() as stack:
            futures = {}
            for region, (builder, services) in plan.items():
                if not services:
                    continue
                executor = stack.enter_context(ThreadPoolExecutor(
                    max_workers=min(per_region_parallelism, len(services)),
                    thread_name_prefix=f"quota-unit-{region}",
                ))
                for service_code in services:
                    future = executor.submit(self._run_unit, builder, region, service_code)
                    futures[future] = (region, service_code)

            for future in as_completed(futures):
                catalog.merge(future.result())

        logger.info(f"[采集] 完成: {catalog.services_scanned} 个服务, {len(catalog.quotas)} 个配额, "
                    f"{len(catalog.errors)} 个错误")
        return catalog

    def _run_unit(self, builder: QuotaCatalogBuilder, region: str, service_code: str) -> UnitResult:
        """执行单个服务单元，所有异常在此转换为 UnitError"""
        result = UnitResult(region=region, service_code=service_code)

        try:
            quotas, skipped = builder.fetch_quotas(service_code)
        except EnumerationError as e:
            logger.error(f"[采集] 服务 {service_code} ({region}) 配额列举失败: {e}", exc_info=True)
            result.errors.append(UnitError(ErrorKind.ENUMERATION, region, service_code, str(e)))
            return result
        except Exception as e:
            logger.error(f"[采集] 服务 {service_code} ({region}) 单元异常: {e}", exc_info=True)
            result.errors.append(UnitError(ErrorKind.ENUMERATION, region, service_code, str(e)))
            return result

        for error in skipped:
            result.errors.append(UnitError(ErrorKind.IDENTIFIER, region, service_code, str(error)))

        if self.eager_resolution:
            # resolve_utilization 内部已捕获查询错误，结果保存在配额上
            for quota in quotas:
                quota.resolve_utilization()

        result.quotas = quotas
        return result
