"""
MeterRegistry 测试
"""

import gc
import math
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor

import pytest
from conftest import Box

from gaugekit.errors import InvalidMeterIdError, RegistryClosedError
from gaugekit.meter.gauge import Gauge, NoopGauge
from gaugekit.meter.histogram_gauges import register_percentile_gauges
from gaugekit.meter.id import MeterId, MeterType
from gaugekit.meter.tags import Tags
from gaugekit.registry import MeterFilter, SimpleMeterRegistry


class TestRegistration:
    """注册测试"""

    def test_empty_name_rejected(self, registry):
        """测试空名称在注册时报错"""
        with pytest.raises(InvalidMeterIdError):
            Gauge.builder("  ", Box(), lambda b: b.value).register(registry)
        with pytest.raises(ValueError):
            Gauge.builder("", Box(), lambda b: b.value).register(registry)

    def test_closed_registry_rejects(self, registry):
        registry.close()
        assert registry.closed
        with pytest.raises(RegistryClosedError):
            Gauge.builder("g", Box(), lambda b: b.value).register(registry)

    def test_registry_does_not_hold_state(self, registry):
        """测试 Registry 不持有状态对象"""
        box = Box(1)
        Gauge.builder("g", box, lambda b: b.value).register(registry)
        del box
        gc.collect()
        assert math.isnan(registry.find("g").gauge().value())

    def test_concurrent_registration(self):
        """测试多线程并发注册同一标识只会生效一个取值源"""
        registry = SimpleMeterRegistry()
        boxes = [Box(i) for i in range(32)]
        barrier = threading.Barrier(8)

        def register(box):
            barrier.wait()
            return Gauge.builder("g", box, lambda b: b.value).tag("k", "v").register(registry)

        with ThreadPoolExecutor(max_workers=8) as pool:
            gauges = list(pool.map(register, boxes[:8]))

        assert all(g is gauges[0] for g in gauges)
        assert len({id(g.value_source) for g in gauges}) == 1
        assert len(registry.get_meters()) == 1

    def test_convenience_gauge_returns_state(self, registry):
        box = registry.gauge("g", Box(7), lambda b: b.value, tags={"k": "v"})
        assert isinstance(box, Box)
        assert registry.find("g").tag("k", "v").gauge().value() == 7.0

    def test_collection_and_map_size(self, registry):
        items = registry.gauge_collection_size("items", [1, 2], strong_reference=True)
        mapping = registry.gauge_map_size("entries", {"a": 1}, strong_reference=True)
        items.append(3)
        mapping["b"] = 2
        assert registry.find("items").gauge().value() == 3.0
        assert registry.find("entries").gauge().value() == 2.0

    def test_weak_collection_size_requires_weakref(self, registry):
        """测试弱引用模式下 list 直接报错，不会被 Registry 隐式持有"""
        with pytest.raises(TypeError):
            registry.gauge_collection_size("items", [1, 2, 3])
        assert registry.get_meters() == []

    def test_weak_collection_size_does_not_keep_alive(self, registry):
        items = registry.gauge_collection_size("items", deque([1, 2, 3]))
        gauge = registry.find("items").gauge()
        assert gauge.value() == 3.0
        del items
        gc.collect()
        assert math.isnan(gauge.value())


class TestSearch:
    """查找测试"""

    def test_find_by_tags(self, registry):
        box1, box2 = Box(1), Box(2)
        Gauge.builder("g", box1, lambda b: b.value).tags("k", "1", "x", "y").register(registry)
        Gauge.builder("g", box2, lambda b: b.value).tags("k", "2").register(registry)
        assert len(registry.find("g").gauges()) == 2
        assert registry.find("g").tag("k", "2").gauge().value() == 2.0
        assert registry.find("g").tags({"k": "3"}).gauge() is None
        assert registry.find("missing").meters() == []

    def test_get_by_id(self, registry):
        gauge = Gauge.builder("g", Box(1), lambda b: b.value).register(registry)
        assert registry.get(MeterId("g", type=MeterType.GAUGE)) is gauge
        assert registry.get(MeterId("g", type=MeterType.COUNTER)) is None


class TestRemoval:
    """移除测试"""

    def test_remove(self, registry):
        gauge = Gauge.builder("g", Box(1), lambda b: b.value).register(registry)
        assert registry.remove(gauge) is gauge
        assert registry.get_meters() == []
        assert registry.remove(gauge) is None

    def test_remove_by_id_then_register_again(self, registry):
        box1, box2 = Box(1), Box(2)
        first = Gauge.builder("g", box1, lambda b: b.value).register(registry)
        registry.remove(first.id)
        second = Gauge.builder("g", box2, lambda b: b.value).register(registry)
        assert second is not first
        assert second.value() == 2.0

    def test_remove_cascades_to_synthetic(self, registry):
        """测试移除主指标时一并移除派生指标"""
        source = Gauge.builder("latency", Box(1), lambda b: b.value).register(registry)
        snapshot = {0.5: 10.0, 0.99: 20.0}
        register_percentile_gauges(registry, source.id, lambda: snapshot, [0.5, 0.99])
        assert len(registry.get_meters()) == 3

        registry.remove(source)
        assert registry.get_meters() == []

    def test_remove_synthetic_keeps_source(self, registry):
        source = Gauge.builder("latency", Box(1), lambda b: b.value).register(registry)
        derived = register_percentile_gauges(registry, source.id, lambda: {0.5: 1.0}, [0.5])
        registry.remove(derived[0])
        assert registry.get_meters() == [source]
        registry.remove(source)
        assert registry.get_meters() == []

    def test_clear(self, registry):
        Gauge.builder("a", Box(1), lambda b: b.value).register(registry)
        Gauge.builder("b", Box(1), lambda b: b.value).register(registry)
        registry.clear()
        assert registry.get_meters() == []


class TestFilters:
    """过滤器测试"""

    def test_common_tags(self, registry):
        """测试公共标签，指标自身标签优先"""
        registry.common_tags("region", "us", "env", "prod")
        gauge = Gauge.builder("g", Box(1), lambda b: b.value).tag("env", "dev").register(registry)
        assert gauge.id.tags == Tags.of("region", "us", "env", "dev")

    def test_filtered_id_is_dedup_key(self, registry):
        registry.meter_filter(MeterFilter.ignore_tags("instance"))
        first = Gauge.builder("g", Box(1), lambda b: b.value).tag("instance", "1").register(registry)
        second = Gauge.builder("g", Box(2), lambda b: b.value).tag("instance", "2").register(registry)
        assert second is first

    def test_deny_returns_noop(self, registry):
        """测试被拒绝的指标不注册，返回 NoopGauge"""
        registry.meter_filter(MeterFilter.deny_name_prefix("debug."))
        gauge = Gauge.builder("debug.g", Box(1), lambda b: b.value).register(registry)
        assert isinstance(gauge, NoopGauge)
        assert math.isnan(gauge.value())
        assert registry.get_meters() == []

    def test_accept_overrides_later_deny(self, registry):
        registry.meter_filter(MeterFilter.accept_name_prefix("debug.keep"))
        registry.meter_filter(MeterFilter.deny_name_prefix("debug."))
        box = Box(1)
        kept = Gauge.builder("debug.keep.g", box, lambda b: b.value).register(registry)
        assert not isinstance(kept, NoopGauge)

    def test_rename_prefix(self, registry):
        registry.meter_filter(MeterFilter.rename_prefix("old.", "new."))
        gauge = Gauge.builder("old.g", Box(1), lambda b: b.value).register(registry)
        assert gauge.id.name == "new.g"
        assert registry.find("new.g").gauge() is gauge


class TestMappedIdLookup:
    """过滤器改写标识后的查找与移除测试"""

    def test_get_and_remove_by_registered_id(self, registry):
        """测试非幂等的改名过滤器下，用 gauge.id 仍能查找和移除"""
        registry.meter_filter(MeterFilter.rename_prefix("app", "app.v2"))
        box = Box(1)
        gauge = Gauge.builder("app.x", box, lambda b: b.value).register(registry)
        assert gauge.id.name == "app.v2.x"

        assert registry.get(gauge.id) is gauge
        assert registry.remove(gauge.id) is gauge
        assert registry.get_meters() == []

    def test_remove_by_pre_filter_id(self, registry):
        registry.meter_filter(MeterFilter.rename_prefix("app", "app.v2"))
        box = Box(1)
        gauge = Gauge.builder("app.x", box, lambda b: b.value).register(registry)
        assert registry.remove_by_pre_filter_id(MeterId("app.x", type=MeterType.GAUGE)) is gauge
        assert registry.get_meters() == []

    def test_remove_synthetic_under_common_tags(self, registry):
        """测试带公共标签时移除主指标仍级联移除派生指标"""
        registry.common_tags("region", "us")
        box = Box(1)
        source = Gauge.builder("latency", box, lambda b: b.value).register(registry)
        register_percentile_gauges(registry, source.id, lambda: {0.5: 1.0}, [0.5])
        assert len(registry.get_meters()) == 2
        registry.remove(source.id)
        assert registry.get_meters() == []
