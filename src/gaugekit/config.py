# -*- coding: utf-8 -*-
"""
gaugekit 配置模块

提供配置定义，支持 YAML 文件、字典和环境变量加载。

示例 YAML:
    ```yaml
    gaugekit:
      enabled: true
      backend: opentelemetry
      service_name: my-service
      registry:
        common_tags:
          region: us
        deny_name_prefixes: ["debug."]
      reader:
        type: stdout
        export_interval: 30s
    ```
"""

import copy
import os
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from gaugekit.errors import ConfigError


def parse_duration(value: Union[str, int, float]) -> float:
    """
    解析时间字符串为秒数

    支持格式：
    - 纯数字：直接作为秒数
    - "30s"：30 秒
    - "5m"：5 分钟
    - "1h"：1 小时
    - "1h30m"：1 小时 30 分钟
    - "100ms"：100 毫秒

    Args:
        value: 时间值

    Returns:
        秒数（float）
    """
    if isinstance(value, (int, float)):
        return float(value)

    if not isinstance(value, str):
        return 0.0

    value = value.strip().lower()
    if not value:
        return 0.0

    try:
        return float(value)
    except ValueError:
        pass

    units = {"h": 3600, "m": 60, "s": 1, "ms": 0.001, "us": 0.000001}
    total_seconds = 0.0
    matched = False
    for number, unit in re.findall(r"(\d+(?:\.\d+)?)\s*(ms|us|h|m|s)", value):
        total_seconds += float(number) * units[unit]
        matched = True

    if not matched:
        return 0.0
    return total_seconds


class BackendType(str, Enum):
    """Registry 后端类型"""
    SIMPLE = "simple"
    OPENTELEMETRY = "opentelemetry"


class ReaderType(str, Enum):
    """MetricReader 类型"""
    NONE = "none"
    STDOUT = "stdout"
    MEMORY = "memory"


class RegistryConfig(BaseModel):
    """Registry 过滤器配置"""
    common_tags: Dict[str, str] = Field(default_factory=dict, description="公共标签")
    deny_name_prefixes: List[str] = Field(default_factory=list, description="拒绝的名称前缀")
    accept_name_prefixes: List[str] = Field(default_factory=list, description="放行的名称前缀（优先于拒绝）")
    name_prefix_rename: Dict[str, str] = Field(default_factory=dict, description="名称前缀重命名（旧 -> 新）")
    ignore_tags: List[str] = Field(default_factory=list, description="忽略的标签 key")


class ReaderConfig(BaseModel):
    """MetricReader 配置（仅 opentelemetry 后端）"""
    type: ReaderType = Field(default=ReaderType.NONE, description="Reader 类型")
    export_interval: str = Field(default="60s", description="导出间隔")
    pretty_print: bool = Field(default=True, description="是否格式化输出")

    @field_validator("export_interval", mode="before")
    @classmethod
    def check_export_interval(cls, v):
        """导出间隔必须是可解析的正时长"""
        if isinstance(v, bool) or parse_duration(v) <= 0:
            raise ValueError(f"export_interval must be a positive duration: {v!r}")
        return str(v)

    @property
    def export_interval_seconds(self) -> float:
        """获取导出间隔秒数"""
        return parse_duration(self.export_interval)


class GaugeKitConfig(BaseModel):
    """gaugekit 完整配置"""
    enabled: bool = Field(default=True, description="是否启用")
    backend: BackendType = Field(default=BackendType.SIMPLE, description="Registry 后端")
    service_name: str = Field(default="unknown-service", description="服务名称")
    meter_name: str = Field(default="gaugekit", description="OpenTelemetry Meter 名称")
    set_global_provider: bool = Field(default=False, description="是否设置为全局 MeterProvider")
    registry: RegistryConfig = Field(default_factory=RegistryConfig, description="Registry 配置")
    reader: ReaderConfig = Field(default_factory=ReaderConfig, description="Reader 配置")


ROOT_KEY = "gaugekit"


def load_config(
    config_file: Optional[str] = None,
    config_dict: Optional[Dict[str, Any]] = None,
    env_prefix: str = "",
) -> GaugeKitConfig:
    """
    加载配置

    优先级：环境变量 > config_dict > config_file > 默认值

    Args:
        config_file: YAML 配置文件路径
        config_dict: 配置字典
        env_prefix: 环境变量前缀

    Returns:
        GaugeKitConfig 实例

    Raises:
        ConfigError: 文件不存在、YAML 解析失败或配置校验失败
    """
    data: Dict[str, Any] = {}

    # 1. 从文件加载
    if config_file:
        if not os.path.exists(config_file):
            raise ConfigError(f"config file not found: {config_file}")
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                file_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"failed to parse config file {config_file}: {e}") from e
        if not isinstance(file_data, dict):
            raise ConfigError(f"config file {config_file} must contain a mapping")
        data = file_data.get(ROOT_KEY) or file_data

    # 2. 合并字典配置
    if config_dict:
        _deep_merge(data, copy.deepcopy(config_dict.get(ROOT_KEY) or config_dict))

    # 3. 从环境变量覆盖（如果指定了前缀）
    if env_prefix:
        _override_from_env(data, env_prefix)

    try:
        return GaugeKitConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"invalid gaugekit config: {e}") from e


def load_config_from_file(config_file: str) -> GaugeKitConfig:
    """从 YAML 文件加载配置"""
    return load_config(config_file=config_file)


def _deep_merge(base: Dict, override: Dict) -> None:
    """深度合并字典"""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _override_from_env(data: Dict, prefix: str) -> None:
    """从环境变量覆盖配置"""
    prefix = prefix.upper()

    env_mappings = {
        f"{prefix}_ENABLED": ("enabled",),
        f"{prefix}_BACKEND": ("backend",),
        f"{prefix}_SERVICE_NAME": ("service_name",),
        f"{prefix}_READER_TYPE": ("reader", "type"),
        f"{prefix}_READER_EXPORT_INTERVAL": ("reader", "export_interval"),
    }

    for env_var, path in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(data, path, _parse_env_value(value))


def _set_nested(data: Dict, path: tuple, value: Any) -> None:
    """设置嵌套字典的值"""
    for key in path[:-1]:
        data = data.setdefault(key, {})
    data[path[-1]] = value


def _parse_env_value(value: str) -> Any:
    """解析环境变量值"""
    lower = value.lower()
    if lower in ("true", "yes"):
        return True
    if lower in ("false", "no"):
        return False
    return value


class GaugeKitConfigBuilder:
    """gaugekit 配置构建器"""

    def __init__(self):
        self._config: Dict[str, Any] = {
            "enabled": True,
            "registry": {},
            "reader": {},
        }

    def with_enabled(self, enabled: bool = True) -> "GaugeKitConfigBuilder":
        """设置是否启用"""
        self._config["enabled"] = enabled
        return self

    def with_backend(self, backend: str) -> "GaugeKitConfigBuilder":
        """设置 Registry 后端（simple/opentelemetry）"""
        self._config["backend"] = backend
        return self

    def with_service_name(self, service_name: str) -> "GaugeKitConfigBuilder":
        self._config["service_name"] = service_name
        return self

    def with_common_tags(self, **tags: str) -> "GaugeKitConfigBuilder":
        """设置公共标签"""
        self._config["registry"]["common_tags"] = tags
        return self

    def with_deny_prefixes(self, *prefixes: str) -> "GaugeKitConfigBuilder":
        self._config["registry"]["deny_name_prefixes"] = list(prefixes)
        return self

    def with_accept_prefixes(self, *prefixes: str) -> "GaugeKitConfigBuilder":
        self._config["registry"]["accept_name_prefixes"] = list(prefixes)
        return self

    def with_stdout_reader(
        self,
        export_interval: str = "60s",
        pretty_print: bool = True,
    ) -> "GaugeKitConfigBuilder":
        """配置 Stdout Reader（同时切换为 opentelemetry 后端）"""
        self._config["backend"] = BackendType.OPENTELEMETRY.value
        self._config["reader"] = {
            "type": ReaderType.STDOUT.value,
            "export_interval": export_interval,
            "pretty_print": pretty_print,
        }
        return self

    def with_memory_reader(self) -> "GaugeKitConfigBuilder":
        """配置 InMemory Reader（同时切换为 opentelemetry 后端）"""
        self._config["backend"] = BackendType.OPENTELEMETRY.value
        self._config["reader"] = {"type": ReaderType.MEMORY.value}
        return self

    def build(self) -> GaugeKitConfig:
        """构建配置对象"""
        try:
            return GaugeKitConfig(**self._config)
        except ValidationError as e:
            raise ConfigError(f"invalid gaugekit config: {e}") from e
