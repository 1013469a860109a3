# -*- coding: utf-8 -*-
"""
派生（synthetic）Gauge

由 Timer / DistributionSummary 等主指标的快照计算出的分位数、直方图桶 Gauge。
这些 Gauge 通过 synthetic() 关联到主指标，移除主指标时会被一并移除。
"""

import logging
from typing import TYPE_CHECKING, Callable, Iterable, List, Mapping, Optional

from gaugekit.meter.gauge import Gauge
from gaugekit.meter.id import MeterId

if TYPE_CHECKING:
    from gaugekit.registry.registry import MeterRegistry

logger = logging.getLogger(__name__)

PERCENTILE_SUFFIX = ".percentile"
HISTOGRAM_SUFFIX = ".histogram"


def _format_double(value: float) -> str:
    return f"{value:g}"


def register_percentile_gauges(
    registry: "MeterRegistry",
    source_id: MeterId,
    snapshot_supplier: Callable[[], Mapping[float, float]],
    percentiles: Iterable[float],
    base_unit: Optional[str] = None,
) -> List[Gauge]:
    """
    注册分位数 Gauge

    每个分位数一个 Gauge，名称为 `<source>.percentile`，标签 phi=<分位数>。

    Args:
        registry: 目标 Registry
        source_id: 主指标标识（应为已注册 Meter 的 id）
        snapshot_supplier: 返回 {分位数: 值} 的函数，每次采样调用一次
        percentiles: 分位数列表，例如 [0.5, 0.95, 0.99]
        base_unit: 单位，默认沿用主指标单位

    Returns:
        注册的 Gauge 列表
    """
    unit = base_unit if base_unit is not None else source_id.base_unit
    gauges = []
    for percentile in percentiles:
        gauges.append(
            Gauge.builder_from_supplier(
                source_id.name + PERCENTILE_SUFFIX,
                _lookup(snapshot_supplier, percentile),
            )
            .tags(source_id.tags)
            .tag("phi", _format_double(percentile))
            .base_unit(unit)
            .synthetic(source_id)
            .register(registry)
        )
    logger.debug("Registered %d percentile gauges for %s", len(gauges), source_id)
    return gauges


def register_bucket_gauges(
    registry: "MeterRegistry",
    source_id: MeterId,
    counts_supplier: Callable[[], Mapping[float, float]],
    buckets: Iterable[float],
) -> List[Gauge]:
    """
    注册直方图桶 Gauge

    每个桶上界一个 Gauge，名称为 `<source>.histogram`，标签 le=<上界>，值为累计计数。
    """
    gauges = []
    for bucket in buckets:
        gauges.append(
            Gauge.builder_from_supplier(
                source_id.name + HISTOGRAM_SUFFIX,
                _lookup(counts_supplier, bucket),
            )
            .tags(source_id.tags)
            .tag("le", _format_double(bucket))
            .synthetic(source_id)
            .register(registry)
        )
    logger.debug("Registered %d histogram bucket gauges for %s", len(gauges), source_id)
    return gauges


def _lookup(supplier: Callable[[], Mapping[float, float]], key: float) -> Callable[[], Optional[float]]:
    def get() -> Optional[float]:
        return supplier().get(key)

    return get
