# -*- coding: utf-8 -*-
"""
Measurement 采样值

Measurement 不保存数值本身，只保存取值函数；
每次读取 value 都会触发一次采样。
"""

from enum import Enum
from typing import Callable


class Statistic(str, Enum):
    """采样值的统计类型"""
    TOTAL = "total"
    TOTAL_TIME = "total_time"
    COUNT = "count"
    MAX = "max"
    VALUE = "value"
    UNKNOWN = "unknown"
    ACTIVE_TASKS = "active_tasks"
    DURATION = "duration"


class Measurement:
    """
    延迟采样的测量值

    示例:
        ```python
        m = Measurement(lambda: 3.0, Statistic.VALUE)
        m.value  # 3.0，此时才调用取值函数
        ```
    """

    __slots__ = ("_supplier", "_statistic")

    def __init__(self, supplier: Callable[[], float], statistic: Statistic):
        self._supplier = supplier
        self._statistic = statistic

    @property
    def value(self) -> float:
        """读取即采样"""
        return self._supplier()

    @property
    def statistic(self) -> Statistic:
        return self._statistic

    def __repr__(self) -> str:
        return f"Measurement{{statistic='{self._statistic.name}'}}"
