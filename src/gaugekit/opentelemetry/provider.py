# -*- coding: utf-8 -*-
"""
OpenTelemetry MeterProvider 安装

提供：
- MetricReader 构建器（Stdout / InMemory）
- MeterProvider 创建、安装和关闭
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    InMemoryMetricReader,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import SERVICE_NAME, Resource

logger = logging.getLogger(__name__)


def create_resource(service_name: str, **attributes: str) -> Resource:
    """创建 Resource"""
    attrs = {SERVICE_NAME: service_name}
    attrs.update(attributes)
    return Resource.create(attrs)


class MetricReaderBuilder(ABC):
    """
    MetricReader 构建器基类

    所有 Reader 实现都需要继承此类。
    """

    @abstractmethod
    def build(self) -> MetricReader:
        """
        构建 MetricReader

        Returns:
            MetricReader 实例
        """
        pass


class StdoutReaderBuilder(MetricReaderBuilder):
    """
    Stdout Reader 构建器

    用于调试，周期性地将采集结果输出到控制台。
    """

    def __init__(
        self,
        pretty_print: bool = True,
        out: Optional[TextIO] = None,
        export_interval_ms: int = 60000,
    ):
        """
        初始化 Stdout Reader 构建器

        Args:
            pretty_print: 是否格式化输出
            out: 输出流（默认 stdout）
            export_interval_ms: 导出间隔（毫秒）
        """
        self._pretty_print = pretty_print
        self._out = out or sys.stdout
        self._export_interval_ms = export_interval_ms

    def build(self) -> MetricReader:
        """构建 MetricReader"""
        if self._pretty_print:
            exporter = ConsoleMetricExporter(
                out=self._out,
                formatter=lambda data: data.to_json(indent=2) + "\n",
            )
        else:
            exporter = ConsoleMetricExporter(
                out=self._out,
                formatter=lambda data: data.to_json(indent=None) + "\n",
            )

        logger.info(
            "Stdout metric reader created: pretty_print=%s, export_interval=%dms",
            self._pretty_print,
            self._export_interval_ms,
        )

        return PeriodicExportingMetricReader(
            exporter=exporter,
            export_interval_millis=self._export_interval_ms,
        )


class InMemoryReaderBuilder(MetricReaderBuilder):
    """
    InMemory Reader 构建器

    只在调用 get_metrics_data() 时采集，适用于测试和自行拉取的场景。
    """

    def __init__(self):
        self._reader: Optional[InMemoryMetricReader] = None

    @property
    def reader(self) -> Optional[InMemoryMetricReader]:
        """最近一次构建的 Reader"""
        return self._reader

    def build(self) -> MetricReader:
        self._reader = InMemoryMetricReader()
        logger.info("InMemory metric reader created")
        return self._reader


class MeterProviderInstaller:
    """
    MeterProvider 管理器

    负责：
    - 创建 MeterProvider
    - 挂载 MetricReader
    - 可选地设置为全局 Provider
    """

    def __init__(
        self,
        resource: Resource,
        reader_builders: Optional[List[MetricReaderBuilder]] = None,
        set_global: bool = False,
    ):
        """
        初始化

        Args:
            resource: OpenTelemetry Resource
            reader_builders: Reader 构建器列表
            set_global: 是否设置为全局 MeterProvider
        """
        self._resource = resource
        self._reader_builders = reader_builders or []
        self._set_global = set_global
        self._provider: Optional[MeterProvider] = None

    def install(self) -> MeterProvider:
        """
        安装 MeterProvider

        Returns:
            MeterProvider 实例
        """
        readers = [builder.build() for builder in self._reader_builders]

        self._provider = MeterProvider(
            resource=self._resource,
            metric_readers=readers,
        )

        if self._set_global:
            metrics.set_meter_provider(self._provider)

        logger.info(
            "MeterProvider installed: readers=%d, global=%s",
            len(readers),
            self._set_global,
        )

        return self._provider

    def shutdown(self) -> None:
        """关闭 MeterProvider"""
        if self._provider:
            self._provider.shutdown()
            self._provider = None
            logger.info("MeterProvider shutdown completed")

    @property
    def provider(self) -> Optional[MeterProvider]:
        """获取 MeterProvider"""
        return self._provider
