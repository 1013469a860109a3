# -*- coding: utf-8 -*-
"""
gaugekit Service 服务类

提供：
- 统一的初始化入口
- 配置驱动的 Registry / MeterProvider 安装
- 支持 YAML 配置文件
"""

import logging
from typing import List, Optional

from opentelemetry.sdk.metrics import MeterProvider

from gaugekit.config import (
    BackendType,
    GaugeKitConfig,
    ReaderType,
    RegistryConfig,
    load_config,
    load_config_from_file,
)
from gaugekit.opentelemetry.provider import (
    InMemoryReaderBuilder,
    MeterProviderInstaller,
    MetricReaderBuilder,
    StdoutReaderBuilder,
    create_resource,
)
from gaugekit.opentelemetry.registry import OpenTelemetryMeterRegistry
from gaugekit.registry.filter import MeterFilter
from gaugekit.registry.registry import MeterRegistry, SimpleMeterRegistry

logger = logging.getLogger(__name__)


def build_filters(config: RegistryConfig) -> List[MeterFilter]:
    """
    按配置生成过滤器

    顺序：重命名 -> 忽略标签 -> 公共标签 -> 放行前缀 -> 拒绝前缀
    """
    filters: List[MeterFilter] = []
    for old_prefix, new_prefix in config.name_prefix_rename.items():
        filters.append(MeterFilter.rename_prefix(old_prefix, new_prefix))
    if config.ignore_tags:
        filters.append(MeterFilter.ignore_tags(*config.ignore_tags))
    if config.common_tags:
        filters.append(MeterFilter.common_tags(config.common_tags))
    for prefix in config.accept_name_prefixes:
        filters.append(MeterFilter.accept_name_prefix(prefix))
    for prefix in config.deny_name_prefixes:
        filters.append(MeterFilter.deny_name_prefix(prefix))
    return filters


class GaugeKitService:
    """
    gaugekit 服务

    示例:
        ```python
        # 从 YAML 配置文件创建
        service = GaugeKitService.from_config_file("config.yaml")
        registry = service.install()

        # 使用 Builder
        config = (
            GaugeKitConfigBuilder()
            .with_service_name("my-service")
            .with_common_tags(region="us")
            .with_stdout_reader(export_interval="30s")
            .build()
        )
        service = GaugeKitService(config)
        registry = service.install()

        Gauge.builder("queue.depth", queue, len).register(registry)
        ```
    """

    def __init__(self, config: GaugeKitConfig):
        """
        初始化服务

        Args:
            config: GaugeKitConfig 配置对象
        """
        self._config = config
        self._registry: Optional[MeterRegistry] = None
        self._installer: Optional[MeterProviderInstaller] = None
        self._memory_reader_builder: Optional[InMemoryReaderBuilder] = None

    @classmethod
    def from_config_file(cls, config_file: str) -> "GaugeKitService":
        """从 YAML 配置文件创建"""
        return cls(load_config_from_file(config_file))

    @classmethod
    def from_config_dict(cls, config_dict: dict) -> "GaugeKitService":
        """从配置字典创建"""
        return cls(load_config(config_dict=config_dict))

    def _create_reader_builder(self) -> Optional[MetricReaderBuilder]:
        """创建 Reader 构建器"""
        reader = self._config.reader
        if reader.type == ReaderType.STDOUT:
            return StdoutReaderBuilder(
                pretty_print=reader.pretty_print,
                export_interval_ms=int(reader.export_interval_seconds * 1000),
            )
        if reader.type == ReaderType.MEMORY:
            self._memory_reader_builder = InMemoryReaderBuilder()
            return self._memory_reader_builder
        return None

    def _create_registry(self) -> MeterRegistry:
        if self._config.backend == BackendType.OPENTELEMETRY:
            reader_builder = self._create_reader_builder()
            self._installer = MeterProviderInstaller(
                resource=create_resource(self._config.service_name),
                reader_builders=[reader_builder] if reader_builder else [],
                set_global=self._config.set_global_provider,
            )
            provider = self._installer.install()
            return OpenTelemetryMeterRegistry.from_provider(provider, self._config.meter_name)
        return SimpleMeterRegistry()

    def install(self) -> MeterRegistry:
        """
        安装

        未启用时返回一个拒绝全部指标的 SimpleMeterRegistry，调用方无需判空。

        Returns:
            MeterRegistry 实例
        """
        if self._registry is not None:
            return self._registry

        if not self._config.enabled:
            logger.info("gaugekit is disabled, all meters will be denied")
            self._registry = SimpleMeterRegistry().meter_filter(MeterFilter.deny(lambda _: True))
            return self._registry

        registry = self._create_registry()
        for meter_filter in build_filters(self._config.registry):
            registry.meter_filter(meter_filter)
        self._registry = registry

        logger.info(
            "gaugekit installed: backend=%s, reader=%s, service=%s",
            self._config.backend.value,
            self._config.reader.type.value,
            self._config.service_name,
        )
        return registry

    def shutdown(self) -> None:
        """关闭 Registry 和 MeterProvider"""
        if self._registry is not None:
            self._registry.close()
        if self._installer is not None:
            self._installer.shutdown()
        logger.info("gaugekit shutdown completed")

    @property
    def config(self) -> GaugeKitConfig:
        return self._config

    @property
    def registry(self) -> Optional[MeterRegistry]:
        return self._registry

    @property
    def provider(self) -> Optional[MeterProvider]:
        if self._installer is None:
            return None
        return self._installer.provider

    @property
    def memory_reader(self):
        """InMemory Reader（reader.type=memory 时可用）"""
        if self._memory_reader_builder is None:
            return None
        return self._memory_reader_builder.reader
