# -*- coding: utf-8 -*-
"""
Gauge 仪表

Gauge 的值在采集时才计算（延迟采样），注册时不会调用取值函数。

示例:
    ```python
    from collections import deque

    queue = deque()
    gauge = (
        Gauge.builder("queue.depth", queue, len)
        .tag("region", "us")
        .description("pending items")
        .register(registry)
    )

    # 供应函数版本（强引用 supplier）
    Gauge.builder_from_supplier("pool.active", lambda: pool.active).register(registry)
    ```
"""

from typing import TYPE_CHECKING, Any, Callable, Generic, List, Optional, TypeVar

from gaugekit.meter.id import MeterId, MeterType
from gaugekit.meter.measurement import Measurement, Statistic
from gaugekit.meter.tags import Tags
from gaugekit.meter.value_source import (
    NAN,
    ValueSource,
    create_value_source,
    supplier_to_double,
)

if TYPE_CHECKING:
    from gaugekit.registry.registry import MeterRegistry

T = TypeVar("T")


class Meter:
    """指标基类"""

    def __init__(self, meter_id: MeterId):
        self._id = meter_id

    @property
    def id(self) -> MeterId:
        return self._id

    def measure(self) -> List[Measurement]:
        """返回测量值列表（不触发采样）"""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._id})"


class Gauge(Meter):
    """
    Gauge 仪表

    注册后不可变；弱引用的状态对象被回收后持续返回 NaN，直到被 Registry 移除。
    """

    def __init__(self, meter_id: MeterId, value_source: ValueSource):
        super().__init__(meter_id)
        self._value_source = value_source

    @property
    def value_source(self) -> ValueSource:
        return self._value_source

    def value(self) -> float:
        """读取即采样"""
        return self._value_source.sample()

    def measure(self) -> List[Measurement]:
        return [Measurement(self.value, Statistic.VALUE)]

    @staticmethod
    def builder(name: str, obj: Optional[T], f: Callable[[T], Any]) -> "GaugeBuilder[T]":
        """
        创建 Gauge 构建器

        Args:
            name: 指标名称
            obj: 状态对象，默认弱引用持有
            f: 从状态对象计算数值的函数

        Returns:
            GaugeBuilder 实例
        """
        return GaugeBuilder(name, obj, f)

    @staticmethod
    def builder_from_supplier(
        name: str, supplier: Callable[[], Any]
    ) -> "GaugeBuilder[Callable[[], Any]]":
        """
        从无参 supplier 创建 Gauge 构建器

        supplier 本身没有其他持有者，因此默认强引用；supplier 返回 None 时采样为 NaN。
        """
        return GaugeBuilder(name, supplier, supplier_to_double).strong_reference(True)


class NoopGauge(Gauge):
    """被过滤器拒绝的 Gauge，不会保存在 Registry 中，采样始终为 NaN"""

    def value(self) -> float:
        return NAN


class GaugeBuilder(Generic[T]):
    """
    Gauge 构建器（链式调用）

    每个方法都修改并返回同一个构建器。register() 按当前状态构建，
    可以重复调用；对同一个 Registry 重复注册会拿到第一次注册的 Gauge。
    """

    def __init__(self, name: str, obj: Optional[T], f: Callable[[T], Any]):
        self._name = name
        self._obj = obj
        self._f = f
        self._tags = Tags.empty()
        self._description: Optional[str] = None
        self._base_unit: Optional[str] = None
        self._synthetic_association: Optional[MeterId] = None
        self._strong_reference = False

    def tag(self, key: str, value: str) -> "GaugeBuilder[T]":
        """添加单个标签，重复 key 以最后一次为准"""
        self._tags = self._tags.and_(key, value)
        return self

    def tags(self, *tags: Any) -> "GaugeBuilder[T]":
        """
        添加多个标签

        示例:
            ```python
            builder.tags("method", "GET", "status", "200")
            builder.tags({"method": "GET"})
            builder.tags(Tags.of("method", "GET"))
            ```
        """
        self._tags = self._tags.and_(*tags)
        return self

    def description(self, description: Optional[str]) -> "GaugeBuilder[T]":
        self._description = description
        return self

    def base_unit(self, unit: Optional[str]) -> "GaugeBuilder[T]":
        self._base_unit = unit
        return self

    def synthetic(self, synthetic_association: MeterId) -> "GaugeBuilder[T]":
        """
        标记为派生指标（例如由 Timer 计算出的分位数）

        只记录来源标识，不影响采样行为。
        """
        self._synthetic_association = synthetic_association
        return self

    def strong_reference(self, strong: bool) -> "GaugeBuilder[T]":
        """是否强引用状态对象"""
        self._strong_reference = strong
        return self

    def build_id(self) -> MeterId:
        return MeterId(
            name=self._name,
            tags=self._tags,
            base_unit=self._base_unit,
            description=self._description,
            type=MeterType.GAUGE,
            synthetic_association=self._synthetic_association,
        )

    def register(self, registry: "MeterRegistry") -> Gauge:
        """
        注册到 Registry

        如果 Registry 中已存在相同标识的 Gauge，直接返回已存在的 Gauge，
        本次构建的取值源被丢弃（先注册者生效）。

        Args:
            registry: 目标 Registry

        Returns:
            新建或已存在的 Gauge
        """
        value_source = create_value_source(self._obj, self._f, self._strong_reference)
        return registry.register_gauge(self.build_id(), self._obj, value_source)
