#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
pytest 配置文件

提供测试夹具和配置
"""

import sys
from pathlib import Path

import pytest

# 将 src 目录添加到 Python 路径
ROOT_DIR = Path(__file__).parent.parent
SRC_DIR = ROOT_DIR / "src"
sys.path.insert(0, str(SRC_DIR))

from opentelemetry.sdk.metrics import MeterProvider  # noqa: E402
from opentelemetry.sdk.metrics.export import InMemoryMetricReader  # noqa: E402

from gaugekit.opentelemetry import OpenTelemetryMeterRegistry  # noqa: E402
from gaugekit.registry import SimpleMeterRegistry  # noqa: E402


class Box:
    """可被弱引用的状态对象"""

    def __init__(self, value=0.0):
        self.value = value


class CountingExtractor:
    """记录调用次数的取值函数"""

    def __init__(self, f=lambda obj: obj.value):
        self.calls = 0
        self._f = f

    def __call__(self, obj):
        self.calls += 1
        return self._f(obj)


@pytest.fixture(scope="session")
def project_root() -> Path:
    """项目根目录"""
    return ROOT_DIR


@pytest.fixture(scope="function")
def registry() -> SimpleMeterRegistry:
    """每个测试函数独立的内存 Registry"""
    r = SimpleMeterRegistry()
    yield r
    r.close()


@pytest.fixture(scope="function")
def otel_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture(scope="function")
def otel_provider(otel_reader) -> MeterProvider:
    provider = MeterProvider(metric_readers=[otel_reader])
    yield provider
    provider.shutdown()


@pytest.fixture(scope="function")
def otel_registry(otel_provider) -> OpenTelemetryMeterRegistry:
    """以 InMemoryMetricReader 采集的 OpenTelemetry Registry"""
    return OpenTelemetryMeterRegistry.from_provider(otel_provider, "test")


def collect_points(reader: InMemoryMetricReader, name: str) -> list:
    """采集一次，返回指定指标的全部数据点"""
    data = reader.get_metrics_data()
    points = []
    if data is None:
        return points
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                if metric.name == name:
                    points.extend(metric.data.data_points)
    return points
