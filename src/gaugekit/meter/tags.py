# -*- coding: utf-8 -*-
"""
Tag / Tags 标签集合

提供：
- 不可变的标签集合
- 同一 key 只保留一个值（后写覆盖先写）
- 按 key 排序，相等性只看集合内容，与添加顺序无关
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


@dataclass(frozen=True, order=True)
class Tag:
    """单个标签（key=value）"""
    key: str
    value: str

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


class Tags:
    """
    不可变标签集合

    示例:
        ```python
        tags = Tags.of("region", "us", "zone", "a")
        tags = tags.and_("region", "eu")   # region=eu 覆盖 region=us
        ```
    """

    __slots__ = ("_tags", "_hash")

    def __init__(self, tags: Tuple[Tag, ...] = ()):
        self._tags = tags
        self._hash = hash(tags)

    @classmethod
    def empty(cls) -> "Tags":
        return _EMPTY

    @classmethod
    def of(cls, *args: Any) -> "Tags":
        """
        创建标签集合

        支持三种调用方式：
        - Tags.of("k1", "v1", "k2", "v2")
        - Tags.of({"k1": "v1"})
        - Tags.of([Tag("k1", "v1")]) / Tags.of(other_tags)

        Raises:
            ValueError: key/value 参数个数为奇数
        """
        return _EMPTY.and_(*args)

    def and_(self, *args: Any) -> "Tags":
        """
        合并标签，返回新集合（原集合不变）

        参数形式同 Tags.of()，重复 key 以后写入的值为准。
        """
        if not args:
            return self
        if len(args) == 1 and not isinstance(args[0], str):
            incoming = _to_pairs(args[0])
        else:
            if len(args) % 2 != 0:
                raise ValueError(
                    f"size must be even, it is a set of key=value pairs: {args!r}"
                )
            incoming = [(str(args[i]), str(args[i + 1])) for i in range(0, len(args), 2)]

        if not incoming:
            return self

        merged: Dict[str, str] = {t.key: t.value for t in self._tags}
        for key, value in incoming:
            merged[key] = value
        return Tags(tuple(Tag(k, merged[k]) for k in sorted(merged)))

    def get(self, key: str) -> Optional[str]:
        for tag in self._tags:
            if tag.key == key:
                return tag.value
        return None

    def without(self, *keys: str) -> "Tags":
        """去掉指定 key 的标签"""
        drop = set(keys)
        kept = tuple(t for t in self._tags if t.key not in drop)
        if len(kept) == len(self._tags):
            return self
        return Tags(kept)

    def to_dict(self) -> Dict[str, str]:
        return {t.key: t.value for t in self._tags}

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __bool__(self) -> bool:
        return bool(self._tags)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tags):
            return NotImplemented
        return self._tags == other._tags

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        return "[" + ", ".join(f"tag({t})" for t in self._tags) + "]"


def _to_pairs(source: Any) -> list:
    if source is None:
        return []
    if isinstance(source, Tags):
        return [(t.key, t.value) for t in source]
    if isinstance(source, Mapping):
        return [(str(k), str(v)) for k, v in source.items()]
    pairs = []
    for item in source:
        if isinstance(item, Tag):
            pairs.append((item.key, item.value))
        else:
            key, value = item
            pairs.append((str(key), str(value)))
    return pairs


_EMPTY = Tags()
