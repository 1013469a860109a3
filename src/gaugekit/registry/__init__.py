# -*- coding: utf-8 -*-
"""
Registry 模块

提供：
- MeterRegistry：注册中心基类（去重、过滤、级联移除）
- SimpleMeterRegistry：内存 Registry
- MeterFilter：注册前改写/拒绝指标标识
- Search：按名称和标签查找
"""

from gaugekit.registry.filter import MeterFilter, MeterFilterReply
from gaugekit.registry.registry import MeterRegistry, SimpleMeterRegistry
from gaugekit.registry.search import Search

__all__ = [
    "MeterRegistry",
    "SimpleMeterRegistry",
    "MeterFilter",
    "MeterFilterReply",
    "Search",
]
