# -*- coding: utf-8 -*-
"""
OpenTelemetry Registry

将已注册的 Gauge 发布为 OpenTelemetry ObservableGauge：
- 同名 Gauge 共用一个 ObservableGauge，每组标签对应一个 Observation
- 只在 MetricReader 采集时通过回调拉取 value()，不会主动推送
- 采样为 NaN（弱引用对象已回收）的 Gauge 不输出 Observation
"""

import logging
import math
from typing import Callable, Dict, Iterable, List

from opentelemetry import metrics
from opentelemetry.metrics import CallbackOptions, Observation

from gaugekit.meter.gauge import Gauge
from gaugekit.meter.id import MeterId
from gaugekit.meter.value_source import ValueSource
from gaugekit.registry.registry import MeterRegistry

logger = logging.getLogger(__name__)


class OpenTelemetryMeterRegistry(MeterRegistry):
    """
    以 OpenTelemetry Meter 为采集目标的 Registry

    示例:
        ```python
        from opentelemetry import metrics

        registry = OpenTelemetryMeterRegistry(metrics.get_meter("my.app"))
        Gauge.builder("queue.depth", queue, len).register(registry)
        ```
    """

    def __init__(self, meter: metrics.Meter):
        """
        初始化 Registry

        Args:
            meter: OpenTelemetry Meter
        """
        super().__init__()
        self._otel_meter = meter
        self._instruments: Dict[str, MeterId] = {}
        logger.info("OpenTelemetryMeterRegistry created")

    @classmethod
    def from_provider(
        cls,
        provider: metrics.MeterProvider,
        meter_name: str = "gaugekit",
    ) -> "OpenTelemetryMeterRegistry":
        """从 MeterProvider 创建"""
        return cls(provider.get_meter(meter_name))

    @property
    def otel_meter(self) -> metrics.Meter:
        return self._otel_meter

    def _new_gauge(self, meter_id: MeterId, value_source: ValueSource) -> Gauge:
        first = self._instruments.get(meter_id.name)
        if first is None:
            self._otel_meter.create_observable_gauge(
                name=meter_id.name,
                callbacks=[self._observe(meter_id.name)],
                unit=meter_id.base_unit or "",
                description=meter_id.description or "",
            )
            self._instruments[meter_id.name] = meter_id
        elif first.base_unit != meter_id.base_unit:
            logger.warning(
                "Gauge %s registered with base_unit=%s, but the instrument was created with "
                "base_unit=%s; the instrument keeps its original unit",
                meter_id,
                meter_id.base_unit,
                first.base_unit,
            )
        return Gauge(meter_id, value_source)

    def _observe(self, name: str) -> Callable[[CallbackOptions], Iterable[Observation]]:
        def callback(options: CallbackOptions) -> Iterable[Observation]:
            if self.closed:
                return []
            observations: List[Observation] = []
            for gauge in self.find(name).gauges():
                value = gauge.value()
                if math.isnan(value):
                    continue
                observations.append(Observation(value, attributes=gauge.id.tags.to_dict()))
            return observations

        return callback
