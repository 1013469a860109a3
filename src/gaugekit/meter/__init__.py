# -*- coding: utf-8 -*-
"""
Meter 模块

提供：
- MeterId / MeterType：指标标识与类型
- Tag / Tags：不可变标签集合
- ValueSource：弱引用 / 强引用取值源
- Gauge / GaugeBuilder：延迟采样的仪表及其构建器
- Measurement / Statistic：测量协议
"""

from gaugekit.meter.gauge import Gauge, GaugeBuilder, Meter, NoopGauge
from gaugekit.meter.id import MeterId, MeterType
from gaugekit.meter.measurement import Measurement, Statistic
from gaugekit.meter.tags import Tag, Tags
from gaugekit.meter.value_source import (
    StrongValueSource,
    ValueSource,
    WeakValueSource,
    create_value_source,
    supplier_to_double,
)

__all__ = [
    # 标识
    "MeterId",
    "MeterType",
    "Tag",
    "Tags",
    # 取值源
    "ValueSource",
    "WeakValueSource",
    "StrongValueSource",
    "create_value_source",
    "supplier_to_double",
    # Meter
    "Meter",
    "Gauge",
    "GaugeBuilder",
    "NoopGauge",
    # 测量协议
    "Measurement",
    "Statistic",
]
