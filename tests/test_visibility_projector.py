"""Tests for VisibilityProjector splice updates."""

from pyqt_virtual_tree.services import TreeStateStore, VisibilityProjector

from tree_factories import ids, make_chain


def make_projector(data):
    store = TreeStateStore(data)
    return store, VisibilityProjector(store)


def descendants(node):
    result = []
    for child in node.children:
        result.append(child.id)
        result.extend(descendants(child))
    return result


def test_initial_sequence_is_roots(tree_data):
    data, _ = tree_data
    _, projector = make_projector(data)
    assert ids(projector.visible()) == [1, 6, 8]


def test_expand_inserts_children_after_node(tree_data):
    data, _ = tree_data
    _, projector = make_projector(data)

    projector.apply(6, 1, expand=True)

    assert ids(projector.visible()) == [1, 6, 7, 8]


def test_insertion_position_shifts_later_rows(tree_data):
    data, _ = tree_data
    _, projector = make_projector(data)
    projector.apply(1, 0, expand=True)  # [1, 2, 3, 6, 8]
    before = ids(projector.visible())

    projector.apply(2, 1, expand=True)

    after = ids(projector.visible())
    assert after[2:4] == [4, 5]
    assert after[:2] == before[:2]
    assert after[4:] == before[2:]


def test_expand_then_collapse_restores_sequence(tree_data):
    data, _ = tree_data
    _, projector = make_projector(data)
    projector.apply(1, 0, expand=True)
    before = ids(projector.visible())

    projector.apply(2, 1, expand=True)
    projector.apply(2, 1, expand=False)

    assert ids(projector.visible()) == before


def test_collapse_removes_whole_subtree(tree_data):
    data, nodes = tree_data
    store, projector = make_projector(data)
    projector.apply(1, 0, expand=True)
    projector.apply(2, 1, expand=True)
    projector.apply(6, 5, expand=True)
    assert ids(projector.visible()) == [1, 2, 4, 5, 3, 6, 7, 8]

    projector.apply(1, 0, expand=False)

    gone = set(descendants(nodes[1]))
    assert not gone & set(ids(projector.visible()))
    assert not gone & store.expanded_ids
    assert ids(projector.visible()) == [1, 6, 7, 8]
    assert store.expanded_ids == frozenset({6})


def test_every_update_replaces_the_list(tree_data):
    data, _ = tree_data
    _, projector = make_projector(data)
    first = projector.visible()

    projector.apply(1, 0, expand=True)
    second = projector.visible()
    projector.apply(8, 4, expand=True)  # leaf: same rows, new list
    third = projector.visible()

    assert first is not second
    assert second is not third
    assert ids(second) == ids(third)


def test_stale_index_falls_back_to_scan(tree_data):
    data, _ = tree_data
    _, projector = make_projector(data)

    projector.apply(6, 0, expand=True)  # 6 is really at position 1

    assert ids(projector.visible()) == [1, 6, 7, 8]


def test_unknown_id_and_repeat_are_noops(tree_data):
    data, _ = tree_data
    _, projector = make_projector(data)
    projector.apply(1, 0, expand=True)
    current = projector.visible()

    assert projector.apply(999, 0, expand=True) is False
    assert projector.apply(1, 0, expand=True) is False
    assert projector.visible() is current


def test_rebuild_materializes_nested_expansion(tree_data):
    data, _ = tree_data
    store, projector = make_projector(data)
    store.replace_expanded([1, 2])

    projector.rebuild()

    assert ids(projector.visible()) == [1, 2, 4, 5, 3, 6, 8]


def test_hidden_expansion_appears_when_parent_expands(tree_data):
    data, _ = tree_data
    _, projector = make_projector(data)

    projector.apply(2, -1, expand=True)  # 2 not visible yet
    assert ids(projector.visible()) == [1, 6, 8]

    projector.apply(1, 0, expand=True)
    assert ids(projector.visible()) == [1, 2, 4, 5, 3, 6, 8]


def test_deep_chain_rebuild_and_collapse():
    store, projector = make_projector(make_chain(3000))
    store.replace_expanded(range(3000))

    projector.rebuild()
    assert ids(projector.visible()) == list(range(3001))

    projector.apply(0, 0, expand=False)
    assert ids(projector.visible()) == [0]
