"""
ValueSource 取值源测试
"""

import gc
import math
import threading

import pytest
from conftest import Box, CountingExtractor

from gaugekit.meter.value_source import (
    StrongValueSource,
    WeakValueSource,
    create_value_source,
    supplier_to_double,
    to_double,
)


class TestToDouble:
    """数值转换测试"""

    def test_numbers(self):
        assert to_double(3) == 3.0
        assert to_double(True) == 1.0
        assert to_double("2.5") == 2.5

    def test_none_and_garbage(self):
        """测试 None 和非数值映射为 NaN"""
        assert math.isnan(to_double(None))
        assert math.isnan(to_double(object()))
        assert math.isnan(to_double("abc"))

    def test_supplier_to_double(self):
        assert supplier_to_double(lambda: 7) == 7.0
        assert math.isnan(supplier_to_double(lambda: None))


class TestWeakValueSource:
    """弱引用取值源测试"""

    def test_sample_while_alive(self):
        box = Box(4)
        source = WeakValueSource(box, lambda b: b.value)
        assert source.sample() == 4.0
        box.value = 5
        assert source.sample() == 5.0
        assert not source.strong

    def test_does_not_keep_state_alive(self):
        """测试对象被回收后采样返回 NaN 且不抛异常"""
        box = Box(4)
        source = WeakValueSource(box, lambda b: b.value)
        del box
        gc.collect()
        assert source.is_stale()
        for _ in range(3):
            assert math.isnan(source.sample())

    def test_none_state(self):
        """测试状态对象为 None 时不调用取值函数"""
        extractor = CountingExtractor()
        source = WeakValueSource(None, extractor)
        assert math.isnan(source.sample())
        assert extractor.calls == 0

    def test_builtin_rejected(self):
        """测试不支持弱引用的对象在构造时报错，而不是被强引用持有"""
        for state in ([1, 2, 3], {"a": 1}, 5):
            with pytest.raises(TypeError, match="strong_reference"):
                WeakValueSource(state, len)

    def test_builtin_with_strong_source(self):
        items = [1, 2, 3]
        source = create_value_source(items, len, strong_reference=True)
        assert source.strong
        assert source.sample() == 3.0


class TestStrongValueSource:
    """强引用取值源测试"""

    def test_keeps_state_alive(self):
        """测试没有其他引用时对象仍然存活"""
        source = StrongValueSource(Box(9), lambda b: b.value)
        gc.collect()
        assert not source.is_stale()
        assert source.sample() == 9.0
        assert source.strong

    def test_supplier_state(self):
        counter = {"n": 0}

        def supplier():
            counter["n"] += 1
            return counter["n"]

        source = StrongValueSource(supplier, supplier_to_double)
        assert source.sample() == 1.0
        assert source.sample() == 2.0


class TestSampling:
    """采样约定测试"""

    def test_lazy_and_counted(self):
        """测试构造时不调用取值函数，调用次数等于采样次数"""
        extractor = CountingExtractor()
        box = Box(1)
        source = create_value_source(box, extractor)
        assert extractor.calls == 0
        for _ in range(5):
            source.sample()
        assert extractor.calls == 5

    def test_extractor_error_returns_nan(self):
        """测试取值函数抛异常时返回 NaN"""

        def boom(_):
            raise RuntimeError("boom")

        box = Box()
        source = create_value_source(box, boom, strong_reference=True)
        assert math.isnan(source.sample())
        assert math.isnan(source.sample())

    def test_concurrent_sampling(self):
        """测试并发采样"""
        box = Box(2)
        source = WeakValueSource(box, lambda b: b.value)
        results = []

        def worker():
            for _ in range(100):
                results.append(source.sample())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 800
        assert all(r == 2.0 for r in results)
