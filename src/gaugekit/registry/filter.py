# -*- coding: utf-8 -*-
"""
MeterFilter 指标过滤器

在注册前改写或拒绝 MeterId，过滤后的标识才是去重的 key。

提供：
- common_tags：追加公共标签
- deny_name_prefix / accept_name_prefix：按名称前缀拒绝或放行
- rename_prefix：重命名名称前缀
- ignore_tags：去掉指定标签
"""

from enum import Enum
from typing import Any, Callable, Optional

from gaugekit.meter.id import MeterId
from gaugekit.meter.tags import Tags


class MeterFilterReply(str, Enum):
    """过滤结果"""
    ACCEPT = "accept"
    NEUTRAL = "neutral"
    DENY = "deny"


class MeterFilter:
    """
    指标过滤器

    子类可以覆写 map() 和 accept()，也可以直接使用工厂方法。
    """

    def __init__(
        self,
        mapper: Optional[Callable[[MeterId], MeterId]] = None,
        acceptor: Optional[Callable[[MeterId], MeterFilterReply]] = None,
    ):
        self._mapper = mapper
        self._acceptor = acceptor

    def map(self, meter_id: MeterId) -> MeterId:
        if self._mapper is None:
            return meter_id
        return self._mapper(meter_id)

    def accept(self, meter_id: MeterId) -> MeterFilterReply:
        if self._acceptor is None:
            return MeterFilterReply.NEUTRAL
        return self._acceptor(meter_id)

    @classmethod
    def common_tags(cls, *tags: Any) -> "MeterFilter":
        """
        追加公共标签

        指标自身的同名标签优先于公共标签。
        """
        common = Tags.of(*tags)
        return cls(mapper=lambda mid: mid.with_tags(common.and_(mid.tags)))

    @classmethod
    def ignore_tags(cls, *keys: str) -> "MeterFilter":
        return cls(mapper=lambda mid: mid.with_tags(mid.tags.without(*keys)))

    @classmethod
    def rename_prefix(cls, old_prefix: str, new_prefix: str) -> "MeterFilter":
        def mapper(mid: MeterId) -> MeterId:
            if mid.name.startswith(old_prefix):
                return mid.with_name(new_prefix + mid.name[len(old_prefix):])
            return mid

        return cls(mapper=mapper)

    @classmethod
    def deny_name_prefix(cls, prefix: str) -> "MeterFilter":
        return cls(
            acceptor=lambda mid: (
                MeterFilterReply.DENY if mid.name.startswith(prefix) else MeterFilterReply.NEUTRAL
            )
        )

    @classmethod
    def accept_name_prefix(cls, prefix: str) -> "MeterFilter":
        return cls(
            acceptor=lambda mid: (
                MeterFilterReply.ACCEPT if mid.name.startswith(prefix) else MeterFilterReply.NEUTRAL
            )
        )

    @classmethod
    def deny(cls, predicate: Callable[[MeterId], bool]) -> "MeterFilter":
        return cls(
            acceptor=lambda mid: MeterFilterReply.DENY if predicate(mid) else MeterFilterReply.NEUTRAL
        )
