# -*- coding: utf-8 -*-
"""
gaugekit 异常定义

采样（sample）本身永远不会抛出异常，失败时降级为 NaN；
只有注册和配置加载阶段会抛出以下异常。
"""


class GaugeKitError(Exception):
    """gaugekit 基础异常"""

    pass


class InvalidMeterIdError(GaugeKitError, ValueError):
    """指标标识非法（例如名称为空）"""

    pass


class RegistryClosedError(GaugeKitError):
    """Registry 已关闭，不再接受注册"""

    pass


class ConfigError(GaugeKitError):
    """配置加载或校验失败"""

    pass
