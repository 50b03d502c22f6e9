"""Expansion state and id lookup for a flattened tree dataset."""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from ..models.tree_item import NodeId, TreeItem
from ..utils.memo import expect_present

logger = logging.getLogger(__name__)


class TreeStateStore:
    """Own the expanded-id set and an id → node index over the dataset.

    The index is built once from the dataset (including nodes reachable only
    through ``children``) and backs every lookup and ancestor walk.
    """

    def __init__(self, data: Sequence[TreeItem]) -> None:
        self._data: Tuple[TreeItem, ...] = tuple(data)
        self._index: Dict[NodeId, TreeItem] = {}
        self._expanded: Set[NodeId] = set()
        self._build_index()
        self._roots: Tuple[TreeItem, ...] = tuple(n for n in self._data if n.parent_id is None)
        logger.debug(f"Indexed {len(self._index)} tree nodes ({len(self._roots)} roots)")

    def _build_index(self) -> None:
        stack: List[TreeItem] = list(reversed(self._data))
        while stack:
            node = stack.pop()
            if node.id in self._index:
                continue
            self._index[node.id] = node
            stack.extend(reversed(node.children))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def data(self) -> Tuple[TreeItem, ...]:
        return self._data

    @property
    def roots(self) -> Tuple[TreeItem, ...]:
        """Root nodes in dataset order."""
        return self._roots

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def find(self, node_id: NodeId) -> Optional[TreeItem]:
        return self._index.get(node_id)

    def require(self, node_id: NodeId) -> TreeItem:
        """Return the node for an id that must exist."""
        return expect_present(self._index.get(node_id), f"no tree node with id {node_id!r}")

    def ancestor_chain(self, node_id: NodeId) -> List[NodeId]:
        """Return ``node_id`` followed by its ancestors up to the root.

        Unknown ids give an empty list. A ``parent_id`` that names no node
        ends the walk as if the node were a root.

        Raises:
            ValueError: The parent links form a cycle.
        """
        chain: List[NodeId] = []
        seen: Set[NodeId] = set()
        node = self._index.get(node_id)
        while node is not None:
            if node.id in seen:
                raise ValueError(f"Cycle in parent links at tree node {node.id!r}")
            seen.add(node.id)
            chain.append(node.id)
            if node.parent_id is None:
                break
            node = self._index.get(node.parent_id)
        return chain

    # ------------------------------------------------------------------
    # Expansion state
    # ------------------------------------------------------------------

    @property
    def expanded_ids(self) -> FrozenSet[NodeId]:
        return frozenset(self._expanded)

    def is_expanded(self, node_id: NodeId) -> bool:
        return node_id in self._expanded

    def expand(self, node_id: NodeId) -> bool:
        """Mark a node expanded. Returns False for unknown ids, leaves and no-ops."""
        node = self._index.get(node_id)
        if node is None or not node.has_children or node_id in self._expanded:
            return False
        self._expanded.add(node_id)
        return True

    def collapse(self, node_id: NodeId) -> List[NodeId]:
        """Unmark a node and every expanded descendant.

        Returns:
            The ids removed from the expanded set; empty when the node was
            not expanded.
        """
        if node_id not in self._expanded:
            return []
        removed: List[NodeId] = []
        seen: Set[NodeId] = set()
        stack: List[TreeItem] = [self._index[node_id]]
        while stack:
            node = stack.pop()
            if node.id in seen:
                continue
            seen.add(node.id)
            if node.id in self._expanded:
                self._expanded.discard(node.id)
                removed.append(node.id)
            stack.extend(node.children)
        return removed

    def replace_expanded(self, node_ids: Iterable[NodeId]) -> None:
        """Replace the expanded set, keeping only known ids that have children."""
        accepted: Set[NodeId] = set()
        for node_id in node_ids:
            node = self._index.get(node_id)
            if node is None or not node.has_children:
                logger.debug(f"Ignoring expanded id {node_id!r}: unknown or leaf")
                continue
            accepted.add(node_id)
        self._expanded = accepted
