# -*- coding: utf-8 -*-
"""
OpenTelemetry 集成

提供：
- OpenTelemetryMeterRegistry：将 Gauge 发布为 ObservableGauge（拉模式）
- MeterProviderInstaller：MeterProvider 创建和安装
- StdoutReaderBuilder / InMemoryReaderBuilder：MetricReader 构建器
"""

from gaugekit.opentelemetry.provider import (
    InMemoryReaderBuilder,
    MeterProviderInstaller,
    MetricReaderBuilder,
    StdoutReaderBuilder,
    create_resource,
)
from gaugekit.opentelemetry.registry import OpenTelemetryMeterRegistry

__all__ = [
    "OpenTelemetryMeterRegistry",
    "MeterProviderInstaller",
    "MetricReaderBuilder",
    "StdoutReaderBuilder",
    "InMemoryReaderBuilder",
    "create_resource",
]
