"""Typed records shared by the tree virtualization engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

NodeId = Union[str, int]

# Payload keys understood by TreeItem.from_payload, camelCase and snake_case.
_PAYLOAD_ALIASES: Dict[str, str] = {
    "id": "id",
    "parentId": "parent_id",
    "parent_id": "parent_id",
    "level": "level",
    "children": "children",
    "isLeaf": "is_leaf",
    "is_leaf": "is_leaf",
    "isExpanded": "is_expanded",
    "is_expanded": "is_expanded",
    "icon": "icon",
}


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


class ScrollDirection(Enum):
    """Direction of the last scroll tick."""

    FORWARD = "forward"
    BACKWARD = "backward"


class ScrollAlignment(Enum):
    """Where an item lands inside the viewport after scroll_to_index."""

    START = "start"
    CENTER = "center"
    END = "end"
    AUTO = "auto"


@dataclass(eq=False)
class TreeItem:
    """One node of a flattened tree dataset.

    Nodes are borrowed from the caller and never mutated by the engine.
    Equality is identity so that memoized getters compare nodes by reference.

    Example:
        >>> leaf = TreeItem(id=2, parent_id=1, level=1, data={"name": "b"})
        >>> root = TreeItem(id=1, parent_id=None, children=[leaf], data={"name": "a"})
        >>> root.has_children
        True
    """

    id: NodeId
    parent_id: Optional[NodeId] = None
    level: int = 0
    children: List["TreeItem"] = field(default_factory=list)
    is_leaf: Optional[bool] = None
    is_expanded: Optional[bool] = None
    icon: Optional[str] = None
    data: Mapping[str, Any] = field(default_factory=_empty_mapping)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def has_children(self) -> bool:
        """True when the node can be expanded to show at least one child."""
        if self.is_leaf:
            return False
        return bool(self.children)

    def get_field(self, key: str) -> Any:
        """Return a field by name, looking at attributes before ``data``."""
        if key in _FIELD_NAMES:
            return getattr(self, key)
        if key in self.data:
            return self.data[key]
        raise KeyError(f"TreeItem {self.id!r} has no field '{key}'")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], level: Optional[int] = None) -> "TreeItem":
        """Build a TreeItem (and its children) from a plain mapping.

        Args:
            payload: Mapping with at least ``id``; ``parentId``/``parent_id``
                defaults to None. Unrecognized keys are kept in ``data``.
            level: Depth to use when the payload carries no ``level``.
        """
        if "id" not in payload:
            raise ValueError(f"Tree payload is missing 'id': {dict(payload)!r}")

        known: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in payload.items():
            target = _PAYLOAD_ALIASES.get(key)
            if target is None:
                extra[key] = value
            else:
                known[target] = value

        item_level = int(known.get("level", level if level is not None else 0))
        children_raw = known.pop("children", None) or []
        children = [
            child if isinstance(child, TreeItem) else cls.from_payload(child, level=item_level + 1)
            for child in children_raw
        ]
        return cls(
            id=known["id"],
            parent_id=known.get("parent_id"),
            level=item_level,
            children=children,
            is_leaf=known.get("is_leaf"),
            is_expanded=known.get("is_expanded"),
            icon=known.get("icon"),
            data=MappingProxyType(extra),
        )


_FIELD_NAMES = frozenset(
    ("id", "parent_id", "level", "children", "is_leaf", "is_expanded", "icon")
)


@dataclass(frozen=True)
class Rect:
    """Content-box size of a scroll container."""

    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class VirtualItem:
    """One row of the rendered window with its layout position."""

    index: int
    key: Any
    start: int
    end: int
    size: int
    lane: int
    node: TreeItem


@dataclass
class ViewportState:
    """Last reported state of an attached scroll container."""

    rect: Rect = field(default_factory=Rect)
    offset: int = 0
    is_scrolling: bool = False
    direction: Optional[ScrollDirection] = None
