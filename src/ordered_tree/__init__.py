"""Ordered tree engine: build sortable hierarchies from flat records and drag them around."""

from ordered_tree.config import DragConfig
from ordered_tree.core.drag.resolver import get_ancestor_chain, get_drag
from ordered_tree.core.drag.session import DragSession
from ordered_tree.core.order.allocator import (
    defragment_orders,
    is_lacking_precision,
    place_within_siblings,
    sort_siblings,
)
from ordered_tree.core.tree.builder import build_tree, build_tree_indexes_with_node_collapsed
from ordered_tree.engine import OrderedTree
from ordered_tree.errors import (
    InvariantError,
    OrderedTreeError,
    PrecisionExhaustedError,
    SessionStateError,
    StructuralError,
)
from ordered_tree.models.drag import OFF_TREE, DragEnd, NodeChange, Point, TreeBox, TreeRow
from ordered_tree.models.node import DatumFunctions, TreeBuild, TreeNode

__all__ = [
    "OFF_TREE",
    "DatumFunctions",
    "DragConfig",
    "DragEnd",
    "DragSession",
    "InvariantError",
    "NodeChange",
    "OrderedTree",
    "OrderedTreeError",
    "Point",
    "PrecisionExhaustedError",
    "SessionStateError",
    "StructuralError",
    "TreeBox",
    "TreeBuild",
    "TreeNode",
    "TreeRow",
    "build_tree",
    "build_tree_indexes_with_node_collapsed",
    "defragment_orders",
    "get_ancestor_chain",
    "get_drag",
    "is_lacking_precision",
    "place_within_siblings",
    "sort_siblings",
]
