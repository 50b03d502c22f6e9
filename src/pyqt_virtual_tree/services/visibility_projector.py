"""Ordered visible-node projection of a tree under an expansion state.

A node is visible iff it is a root, or its parent is visible and expanded.
The sequence is depth-first pre-order: an expanded node's visible subtree
occupies the positions directly after it.

Every update builds a new list. Memoized readers compare the sequence by
identity, so an in-place edit would never be observed.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..models.tree_item import NodeId, TreeItem
from .tree_state_store import TreeStateStore

logger = logging.getLogger(__name__)


class VisibilityProjector:
    """Maintain the visible sequence with splices on expand and collapse."""

    def __init__(self, store: TreeStateStore) -> None:
        self._store = store
        self._visible: List[TreeItem] = []
        self.rebuild()

    def visible(self) -> List[TreeItem]:
        """Current visible sequence. Treat as read-only."""
        return self._visible

    def __len__(self) -> int:
        return len(self._visible)

    def rebuild(self) -> None:
        """Recompute the whole sequence from the roots and the expanded set."""
        rows: List[TreeItem] = []
        for root in self._store.roots:
            rows.append(root)
            rows.extend(self._materialize(root))
        self._visible = rows

    def apply(self, node_id: NodeId, visible_index: int, expand: bool) -> bool:
        """Expand or collapse one node at its position in the visible sequence.

        Args:
            node_id: Node to change.
            visible_index: Current position of the node in ``visible()``. A stale
                position falls back to a scan.
            expand: True to expand, False to collapse.

        Returns:
            True when the sequence was replaced; False for unknown ids and
            nodes already in the requested state.
        """
        node = self._store.find(node_id)
        if node is None:
            return False
        if expand:
            return self._expand(node, visible_index)
        return self._collapse(node, visible_index)

    def _expand(self, node: TreeItem, visible_index: int) -> bool:
        if not node.has_children:
            # Leaves never enter the expanded set; a fresh list still lets
            # readers re-render (for example a selection change).
            self._visible = list(self._visible)
            return True
        if not self._store.expand(node.id):
            return False

        position = self._locate(node, visible_index)
        if position is None:
            # Hidden node: recorded as expanded, materialized when revealed.
            return False
        rows = self._materialize(node)
        self._visible = self._visible[: position + 1] + rows + self._visible[position + 1 :]
        return True

    def _collapse(self, node: TreeItem, visible_index: int) -> bool:
        if not self._store.is_expanded(node.id):
            return False

        position = self._locate(node, visible_index)
        span = self._visible_span(node) if position is not None else 0
        removed = self._store.collapse(node.id)
        logger.debug(f"Collapsed {node.id!r}: {span} rows hidden, {len(removed)} ids unexpanded")
        if position is None:
            return False
        self._visible = self._visible[: position + 1] + self._visible[position + 1 + span :]
        return True

    def _locate(self, node: TreeItem, hint: int) -> Optional[int]:
        if 0 <= hint < len(self._visible) and self._visible[hint].id == node.id:
            return hint
        for position, candidate in enumerate(self._visible):
            if candidate.id == node.id:
                if hint >= 0:
                    logger.debug(f"Stale visible index {hint} for {node.id!r}, found at {position}")
                return position
        return None

    def _materialize(self, node: TreeItem) -> List[TreeItem]:
        """Visible subtree of an expanded node, excluding the node itself."""
        rows: List[TreeItem] = []
        if not self._store.is_expanded(node.id):
            return rows
        stack: List[TreeItem] = list(reversed(node.children))
        while stack:
            child = stack.pop()
            rows.append(child)
            if self._store.is_expanded(child.id):
                stack.extend(reversed(child.children))
        return rows

    def _visible_span(self, node: TreeItem) -> int:
        if not self._store.is_expanded(node.id):
            return 0
        span = 0
        stack: List[TreeItem] = list(node.children)
        while stack:
            child = stack.pop()
            span += 1
            if self._store.is_expanded(child.id):
                stack.extend(child.children)
        return span
