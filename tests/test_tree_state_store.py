"""Tests for TreeStateStore."""

import pytest

from pyqt_virtual_tree import TreeItem
from pyqt_virtual_tree.services import TreeStateStore

from tree_factories import make_chain


def test_index_covers_children_only_nodes():
    grandchild = TreeItem(id="c", parent_id="b")
    child = TreeItem(id="b", parent_id="a", children=[grandchild])
    store = TreeStateStore([TreeItem(id="a", children=[child])])

    assert store.find("c") is grandchild
    assert len(store) == 3
    assert [n.id for n in store.roots] == ["a"]


def test_ancestor_chain_walks_to_root(tree_data):
    data, _ = tree_data
    store = TreeStateStore(data)

    assert store.ancestor_chain(5) == [5, 2, 1]
    assert store.ancestor_chain(1) == [1]
    assert store.ancestor_chain(999) == []


def test_ancestor_chain_stops_at_missing_parent():
    store = TreeStateStore([TreeItem(id=1, parent_id=42)])
    assert store.ancestor_chain(1) == [1]


def test_ancestor_chain_rejects_cycles():
    store = TreeStateStore([TreeItem(id=1, parent_id=2), TreeItem(id=2, parent_id=1)])
    with pytest.raises(ValueError, match="Cycle"):
        store.ancestor_chain(1)


def test_require_fails_loud_for_unknown_id(tree_data):
    data, _ = tree_data
    store = TreeStateStore(data)
    with pytest.raises(ValueError, match="no tree node with id 999"):
        store.require(999)


def test_expand_is_idempotent_and_ignores_leaves(tree_data):
    data, _ = tree_data
    store = TreeStateStore(data)

    assert store.expand(1) is True
    assert store.expand(1) is False
    assert store.expand(8) is False  # is_leaf
    assert store.expand(3) is False  # no children
    assert store.expand(999) is False
    assert store.expanded_ids == frozenset({1})


def test_collapse_removes_expanded_descendants(tree_data):
    data, _ = tree_data
    store = TreeStateStore(data)
    for node_id in (1, 2, 6):
        store.expand(node_id)

    removed = store.collapse(1)

    assert sorted(removed) == [1, 2]
    assert store.expanded_ids == frozenset({6})
    assert store.collapse(1) == []


def test_collapse_clears_expansion_hidden_below_collapsed_child():
    store = TreeStateStore(make_chain(3))
    store.replace_expanded([0, 2])  # 1 collapsed, so 2 is hidden

    removed = store.collapse(0)

    assert sorted(removed) == [0, 2]
    assert store.expanded_ids == frozenset()


def test_collapse_walks_only_the_collapsed_subtree(tree_data, monkeypatch):
    data, _ = tree_data
    store = TreeStateStore(data)
    store.replace_expanded([1, 2, 6])

    def fail(node_id):
        raise AssertionError(f"ancestor walk for {node_id!r}")

    monkeypatch.setattr(store, "ancestor_chain", fail)

    assert sorted(store.collapse(1)) == [1, 2]
    assert store.expanded_ids == frozenset({6})


def test_collapse_deep_chain():
    store = TreeStateStore(make_chain(3000))
    store.replace_expanded(range(3000))

    removed = store.collapse(0)

    assert len(removed) == 3000
    assert store.expanded_ids == frozenset()


def test_replace_expanded_filters_unknown_and_leaves(tree_data):
    data, _ = tree_data
    store = TreeStateStore(data)
    store.replace_expanded([1, 3, 8, 999, 2])
    assert store.expanded_ids == frozenset({1, 2})
