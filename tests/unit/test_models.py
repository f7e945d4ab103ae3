"""Tests for domain models."""

import pytest

from ordered_tree.errors import InvariantError, ensure
from ordered_tree.models.drag import ChangeKind, DragEnd, NodeChange, Point
from ordered_tree.models.node import TreeBuild, TreeNode
from ordered_tree.protocols import BulkOrderHandler, MoveHandler, NodeListener
from tests.unit.fakes import RecordingHost, RecordingListener


def _node(node_id: str, *parent_ids: str) -> TreeNode:
    return TreeNode(
        id=node_id,
        data=None,
        children=(),
        parent_ids=parent_ids,
        is_last_child=True,
        index=0,
        order=0.5,
    )


def test_tree_node_is_frozen() -> None:
    node = _node("a")
    with pytest.raises(AttributeError):
        node.order = 0.7  # type: ignore[misc]


def test_tree_node_depth_and_parent() -> None:
    assert _node("a").depth == 0
    assert _node("a").parent_id is None
    grandkid = _node("c", "b", "a")
    assert grandkid.depth == 2
    assert grandkid.parent_id == "b"


def test_children_of_unknown_parent_is_empty() -> None:
    root = _node("a")
    build = TreeBuild(
        roots=(root,),
        root_data=(None,),
        tree_size=1,
        missing_orders_by_id={},
        nodes_by_index={0: root},
        nodes_by_id={"a": root},
        indexes_by_id={"a": 0},
    )
    assert build.children_of(None) == (root,)
    assert build.children_of("a") == ()
    assert build.children_of("gone") == ()


def test_drag_end_equality_ignores_distance() -> None:
    assert DragEnd(0.5, None, 0, drag_distance=1.0) == DragEnd(0.5, None, 0, drag_distance=9.0)
    assert DragEnd(0.5, None, 0) != DragEnd(0.5, None, 0, did_move=False)


def test_value_types_are_frozen() -> None:
    with pytest.raises(AttributeError):
        Point(1, 2).x = 3  # type: ignore[misc]
    with pytest.raises(AttributeError):
        NodeChange(ChangeKind.DROPPED).order = 0.1  # type: ignore[misc]


def test_fakes_satisfy_the_callback_protocols() -> None:
    host = RecordingHost([])
    assert isinstance(host.on_node_move, MoveHandler)
    assert isinstance(host.on_bulk_node_order, BulkOrderHandler)
    assert isinstance(RecordingListener(), NodeListener)


def test_ensure_returns_present_values() -> None:
    assert ensure(0, "zero is a value (%s)") == 0


def test_ensure_raises_for_none() -> None:
    with pytest.raises(InvariantError, match=r"missing \(None\)"):
        ensure(None, "missing (%s)")
