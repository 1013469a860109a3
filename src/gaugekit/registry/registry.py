# -*- coding: utf-8 -*-
"""
MeterRegistry 指标注册中心

负责：
- MeterId -> Meter 的映射，保证每个标识最多一个 Meter（先注册者生效）
- 注册前应用 MeterFilter（改写标识 / 拒绝注册）
- 移除主指标时级联移除其派生（synthetic）指标

并发模型：
- 读路径（命中已存在的标识）不加锁，直接读取当前映射
- 写路径加锁后二次检查，再以 copy-on-write 方式替换映射
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sized, TypeVar, Union

from gaugekit.errors import InvalidMeterIdError, RegistryClosedError
from gaugekit.meter.gauge import Gauge, Meter, NoopGauge
from gaugekit.meter.id import MeterId
from gaugekit.meter.value_source import ValueSource
from gaugekit.registry.filter import MeterFilter, MeterFilterReply
from gaugekit.registry.search import Search

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MeterRegistry(ABC):
    """
    指标注册中心基类

    子类通过 _new_gauge() 决定如何创建 Gauge（例如同时在 OpenTelemetry 上创建
    ObservableGauge），通过 _on_meter_removed() 感知移除。
    """

    def __init__(self):
        self._meter_map: Dict[MeterId, Meter] = {}
        self._synthetic_associations: Dict[MeterId, FrozenSet[MeterId]] = {}
        self._filters: tuple = ()
        self._lock = threading.Lock()
        self._closed = False

    # ========== 过滤器 ==========

    def meter_filter(self, meter_filter: MeterFilter) -> "MeterRegistry":
        """
        添加过滤器（链式调用）

        已注册的指标不会被重新映射。
        """
        with self._lock:
            if self._meter_map:
                logger.warning(
                    "A MeterFilter is being configured after %d meter(s) were registered; "
                    "existing meters are not affected",
                    len(self._meter_map),
                )
            self._filters = self._filters + (meter_filter,)
        return self

    def common_tags(self, *tags: Any) -> "MeterRegistry":
        """追加公共标签"""
        return self.meter_filter(MeterFilter.common_tags(*tags))

    def _map_id(self, meter_id: MeterId) -> MeterId:
        mapped = meter_id
        for f in self._filters:
            mapped = f.map(mapped)
        return mapped

    def _accept(self, meter_id: MeterId) -> bool:
        for f in self._filters:
            reply = f.accept(meter_id)
            if reply == MeterFilterReply.DENY:
                return False
            if reply == MeterFilterReply.ACCEPT:
                return True
        return True

    # ========== 注册 ==========

    def register_gauge(
        self,
        meter_id: MeterId,
        state: Optional[Any],
        value_source: ValueSource,
    ) -> Gauge:
        """
        注册 Gauge，或返回已存在的同标识 Gauge

        先注册者生效：标识已存在时直接返回已有 Gauge，传入的 value_source 被丢弃。
        Registry 不持有 state，它只用于日志。

        Args:
            meter_id: 指标标识
            state: 状态对象
            value_source: 取值源

        Returns:
            Gauge 实例；被过滤器拒绝时返回未注册的 NoopGauge

        Raises:
            InvalidMeterIdError: 名称为空
            RegistryClosedError: Registry 已关闭
        """
        if self._closed:
            raise RegistryClosedError(f"registry is closed, cannot register {meter_id}")

        mapped_id = self._map_id(meter_id)
        if not isinstance(mapped_id.name, str) or not mapped_id.name.strip():
            raise InvalidMeterIdError(f"meter name must be a non-empty string: {mapped_id.name!r}")

        existing = self._meter_map.get(mapped_id)
        if existing is not None:
            return self._existing_gauge(existing, mapped_id)

        if not self._accept(mapped_id):
            logger.debug("Meter denied by filter: %s", mapped_id)
            return NoopGauge(mapped_id, value_source)

        with self._lock:
            existing = self._meter_map.get(mapped_id)
            if existing is not None:
                return self._existing_gauge(existing, mapped_id)

            gauge = self._new_gauge(mapped_id, value_source)

            meter_map = dict(self._meter_map)
            meter_map[mapped_id] = gauge
            self._meter_map = meter_map

            parent = mapped_id.synthetic_association
            if parent is not None:
                associations = dict(self._synthetic_associations)
                associations[parent] = associations.get(parent, frozenset()) | {mapped_id}
                self._synthetic_associations = associations

        logger.debug(
            "Gauge registered: %s, state=%s, strong=%s",
            mapped_id,
            type(state).__name__,
            value_source.strong,
        )
        return gauge

    def _existing_gauge(self, existing: Meter, meter_id: MeterId) -> Gauge:
        if not isinstance(existing, Gauge):
            raise InvalidMeterIdError(
                f"{meter_id} is already registered as {type(existing).__name__}"
            )
        logger.debug("Gauge already registered, returning existing: %s", meter_id)
        return existing

    @abstractmethod
    def _new_gauge(self, meter_id: MeterId, value_source: ValueSource) -> Gauge:
        """创建 Gauge（持有注册锁时调用，不得触发采样）"""

    def _on_meter_removed(self, meter: Meter) -> None:
        """Meter 被移除后的回调"""

    # ========== 便捷注册 ==========

    def gauge(
        self,
        name: str,
        obj: T,
        f: Callable[[T], Any],
        tags: Optional[Any] = None,
        strong_reference: bool = False,
    ) -> T:
        """
        注册 Gauge 并返回状态对象本身

        Args:
            name: 指标名称
            obj: 状态对象
            f: 取值函数
            tags: 标签
            strong_reference: 是否强引用状态对象；list、dict 等不支持弱引用的对象必须为 True

        示例:
            ```python
            self.pending = registry.gauge("jobs.pending", JobQueue(), lambda q: q.size())
            self.items = registry.gauge_collection_size("items", [], strong_reference=True)
            ```

        Raises:
            TypeError: 弱引用模式下状态对象不支持弱引用
        """
        builder = Gauge.builder(name, obj, f).strong_reference(strong_reference)
        if tags:
            builder.tags(tags)
        builder.register(self)
        return obj

    def gauge_collection_size(
        self,
        name: str,
        collection: Sized,
        tags: Optional[Any] = None,
        strong_reference: bool = False,
    ):
        """以 len(collection) 作为值注册 Gauge"""
        return self.gauge(name, collection, len, tags, strong_reference)

    def gauge_map_size(
        self,
        name: str,
        mapping: Dict,
        tags: Optional[Any] = None,
        strong_reference: bool = False,
    ):
        """以 len(mapping) 作为值注册 Gauge"""
        return self.gauge(name, mapping, len, tags, strong_reference)

    # ========== 查询与移除 ==========

    def get_meters(self) -> List[Meter]:
        """当前已注册 Meter 的快照"""
        return list(self._meter_map.values())

    def get(self, mapped_id: MeterId) -> Optional[Meter]:
        """按已经过过滤器映射的标识（例如 gauge.id）查找"""
        return self._meter_map.get(mapped_id)

    def find(self, name: str) -> Search:
        """按名称查找"""
        return Search(self, name)

    def remove(self, meter: Union[Meter, MeterId]) -> Optional[Meter]:
        """
        移除 Meter 以及由它派生的 synthetic Meter

        Args:
            meter: Meter 或已经过过滤器映射的 MeterId（例如 gauge.id）

        Returns:
            被移除的 Meter，不存在时返回 None
        """
        meter_id = meter.id if isinstance(meter, Meter) else meter

        removed: List[Meter] = []
        with self._lock:
            if meter_id not in self._meter_map:
                return None
            meter_map = dict(self._meter_map)
            associations = dict(self._synthetic_associations)

            target = meter_map.pop(meter_id)
            removed.append(target)
            for child_id in associations.pop(meter_id, frozenset()):
                child = meter_map.pop(child_id, None)
                if child is not None:
                    removed.append(child)

            parent = target.id.synthetic_association
            if parent is not None and parent in associations:
                remaining = associations[parent] - {target.id}
                if remaining:
                    associations[parent] = remaining
                else:
                    del associations[parent]

            self._meter_map = meter_map
            self._synthetic_associations = associations

        for m in removed:
            logger.debug("Meter removed: %s", m.id)
            self._on_meter_removed(m)
        return removed[0]

    def remove_by_pre_filter_id(self, meter_id: MeterId) -> Optional[Meter]:
        """按注册时传入的原始标识移除（先经过过滤器映射）"""
        return self.remove(self._map_id(meter_id))

    def clear(self) -> None:
        """移除全部 Meter"""
        for meter in self.get_meters():
            self.remove(meter)

    # ========== 生命周期 ==========

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """关闭 Registry，之后的注册会抛出 RegistryClosedError"""
        if self._closed:
            return
        self._closed = True
        logger.info("%s closed: meters=%d", type(self).__name__, len(self._meter_map))


class SimpleMeterRegistry(MeterRegistry):
    """
    内存 Registry

    只在进程内保存 Meter，适用于测试和自行拉取 measure() 的场景。
    """

    def __init__(self):
        super().__init__()
        logger.info("SimpleMeterRegistry created")

    def _new_gauge(self, meter_id: MeterId, value_source: ValueSource) -> Gauge:
        return Gauge(meter_id, value_source)
