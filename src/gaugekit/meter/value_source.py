# -*- coding: utf-8 -*-
"""
ValueSource 取值源

提供：
- WeakValueSource：弱引用持有状态对象，对象被回收后采样返回 NaN
- StrongValueSource：强引用持有状态对象，生命周期跟随取值源
- supplier_to_double：无参 supplier 的取值函数，None 映射为 NaN

采样约定：sample() 永远不抛出异常，无法取值时返回 NaN。
"""

import logging
import math
import weakref
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

NAN = math.nan


def to_double(value: Any) -> float:
    """将取值结果转换为 float，None 或非数值返回 NaN"""
    if value is None:
        return NAN
    try:
        return float(value)
    except (TypeError, ValueError):
        return NAN


def supplier_to_double(supplier: Callable[[], Any]) -> float:
    """调用无参 supplier 并转换为 float"""
    return to_double(supplier())


class ValueSource(ABC, Generic[T]):
    """
    取值源基类

    子类只需要实现 _state()，返回当前可用的状态对象（不可用时返回 None）。
    """

    def __init__(self, extractor: Callable[[T], Any]):
        self._extractor = extractor
        self._failed = False

    @property
    @abstractmethod
    def strong(self) -> bool:
        """是否强引用状态对象"""

    @abstractmethod
    def _state(self) -> Optional[T]:
        """获取状态对象"""

    def is_stale(self) -> bool:
        """状态对象是否已经不可用"""
        return self._state() is None

    def sample(self) -> float:
        """
        采样

        Returns:
            取值结果；状态对象不可用、取值为 None 或取值失败时返回 NaN
        """
        state = self._state()
        if state is None:
            return NAN
        try:
            return to_double(self._extractor(state))
        except Exception:
            if not self._failed:
                self._failed = True
                logger.warning(
                    "Failed to sample value from %s, reporting NaN",
                    type(state).__name__,
                    exc_info=True,
                )
            else:
                logger.debug("Failed to sample value from %s", type(state).__name__)
            return NAN


class WeakValueSource(ValueSource[T]):
    """
    弱引用取值源

    不延长状态对象的生命周期。

    Raises:
        TypeError: 状态对象不支持弱引用（list、dict、int 等），
            需要改用 strong_reference(True) 或支持弱引用的容器（例如 collections.deque）
    """

    def __init__(self, state: Optional[T], extractor: Callable[[T], Any]):
        super().__init__(extractor)
        self._ref: Optional[weakref.ref] = None
        if state is None:
            return
        try:
            self._ref = weakref.ref(state)
        except TypeError as e:
            raise TypeError(
                f"{type(state).__name__} does not support weak references; "
                "use strong_reference(True) or a weak-referenceable container "
                "such as collections.deque"
            ) from e

    @property
    def strong(self) -> bool:
        return False

    def _state(self) -> Optional[T]:
        if self._ref is None:
            return None
        return self._ref()


class StrongValueSource(ValueSource[T]):
    """
    强引用取值源

    用于状态对象本身就是临时计算（例如 lambda supplier）、没有其他持有者的场景。
    """

    def __init__(self, state: Optional[T], extractor: Callable[[T], Any]):
        super().__init__(extractor)
        self._obj = state

    @property
    def strong(self) -> bool:
        return True

    def _state(self) -> Optional[T]:
        return self._obj


def create_value_source(
    state: Optional[T],
    extractor: Callable[[T], Any],
    strong_reference: bool = False,
) -> ValueSource[T]:
    """按引用强度创建取值源"""
    if strong_reference:
        return StrongValueSource(state, extractor)
    return WeakValueSource(state, extractor)
