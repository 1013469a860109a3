# -*- coding: utf-8 -*-
"""
MeterId 指标标识

MeterId 是 Registry 去重和查找的 key，不可变，可安全地跨线程共享。

参与相等性（和 hash）的字段：
- name
- tags（按集合比较）
- base_unit
- type

不参与相等性的字段（仅为元数据）：
- description
- synthetic_association
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from gaugekit.meter.tags import Tags


class MeterType(str, Enum):
    """指标类型"""
    COUNTER = "counter"
    GAUGE = "gauge"
    TIMER = "timer"
    DISTRIBUTION_SUMMARY = "distribution_summary"
    LONG_TASK_TIMER = "long_task_timer"
    OTHER = "other"


@dataclass(frozen=True)
class MeterId:
    """
    指标标识

    构造永远不会失败；名称是否合法由 Registry 在注册时校验。

    Attributes:
        name: 指标名称
        tags: 标签集合
        base_unit: 基础单位
        description: 描述（不参与相等性）
        type: 指标类型
        synthetic_association: 派生来源的标识（不参与相等性）
    """
    name: str
    tags: Tags = field(default_factory=Tags.empty)
    base_unit: Optional[str] = None
    description: Optional[str] = field(default=None, compare=False)
    type: MeterType = MeterType.OTHER
    synthetic_association: Optional["MeterId"] = field(default=None, compare=False)

    def __post_init__(self):
        # 只保留来源的 key 字段副本，避免形成派生链
        parent = self.synthetic_association
        if parent is not None and parent.synthetic_association is not None:
            object.__setattr__(
                self,
                "synthetic_association",
                dataclasses.replace(parent, synthetic_association=None),
            )

    def with_name(self, name: str) -> "MeterId":
        return dataclasses.replace(self, name=name)

    def with_tags(self, tags: Tags) -> "MeterId":
        return dataclasses.replace(self, tags=tags)

    def with_tag(self, key: str, value: str) -> "MeterId":
        return dataclasses.replace(self, tags=self.tags.and_(key, value))

    def with_base_unit(self, base_unit: Optional[str]) -> "MeterId":
        return dataclasses.replace(self, base_unit=base_unit)

    def get_tag(self, key: str) -> Optional[str]:
        return self.tags.get(key)

    @property
    def synthetic(self) -> bool:
        """是否为派生指标"""
        return self.synthetic_association is not None

    def __str__(self) -> str:
        return f"MeterId{{name='{self.name}', tags={self.tags!r}}}"
