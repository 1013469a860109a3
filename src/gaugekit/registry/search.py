# -*- coding: utf-8 -*-
"""
Search 按名称和标签查找已注册的 Meter

示例:
    ```python
    gauge = registry.find("queue.depth").tag("region", "us").gauge()
    ```
"""

from typing import TYPE_CHECKING, Any, List, Optional

from gaugekit.meter.gauge import Gauge, Meter
from gaugekit.meter.tags import Tags

if TYPE_CHECKING:
    from gaugekit.registry.registry import MeterRegistry


class Search:
    """Meter 查询（链式调用）"""

    def __init__(self, registry: "MeterRegistry", name: str):
        self._registry = registry
        self._name = name
        self._required_tags = Tags.empty()

    def tag(self, key: str, value: str) -> "Search":
        self._required_tags = self._required_tags.and_(key, value)
        return self

    def tags(self, *tags: Any) -> "Search":
        self._required_tags = self._required_tags.and_(*tags)
        return self

    def _matches(self, meter: Meter) -> bool:
        if meter.id.name != self._name:
            return False
        for tag in self._required_tags:
            if meter.id.get_tag(tag.key) != tag.value:
                return False
        return True

    def meters(self) -> List[Meter]:
        return [m for m in self._registry.get_meters() if self._matches(m)]

    def gauges(self) -> List[Gauge]:
        return [m for m in self.meters() if isinstance(m, Gauge)]

    def gauge(self) -> Optional[Gauge]:
        """返回第一个匹配的 Gauge，没有时返回 None"""
        found = self.gauges()
        return found[0] if found else None
