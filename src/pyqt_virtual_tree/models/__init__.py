"""
Data records for tree virtualization.
"""

from .tree_item import (
    NodeId,
    Rect,
    ScrollAlignment,
    ScrollDirection,
    TreeItem,
    ViewportState,
    VirtualItem,
)

__all__ = [
    "NodeId",
    "Rect",
    "ScrollAlignment",
    "ScrollDirection",
    "TreeItem",
    "ViewportState",
    "VirtualItem",
]
