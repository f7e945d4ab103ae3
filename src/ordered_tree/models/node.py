"""Domain models for the ordered tree."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DatumFunctions:
    """Accessors the engine uses to read externally owned records.

    Records are never mutated; everything the engine knows about a record
    comes through these callables.
    """

    get_id: Callable[[Any], str]
    get_parent_id: Callable[[Any], str | None]
    get_order: Callable[[Any], float | None]
    compare: Callable[[Any, Any], int]
    is_collapsed: Callable[[Any], bool]
    is_filtered_out: Callable[[Any], bool] | None = None


@dataclass(frozen=True)
class TreeNode:
    """A single visible node of a tree build."""

    id: str
    data: Any
    children: tuple["TreeNode", ...]
    parent_ids: tuple[str, ...]
    is_last_child: bool
    index: int
    order: float
    is_collapsed: bool = False
    child_count: int = 0

    @property
    def depth(self) -> int:
        return len(self.parent_ids)

    @property
    def parent_id(self) -> str | None:
        return self.parent_ids[0] if self.parent_ids else None


@dataclass(frozen=True)
class TreeBuild:
    """An indexed forest built from one snapshot of flat records."""

    roots: tuple[TreeNode, ...]
    root_data: tuple[Any, ...]
    tree_size: int
    missing_orders_by_id: dict[str, float]
    nodes_by_index: dict[int, TreeNode]
    nodes_by_id: dict[str, TreeNode]
    indexes_by_id: dict[str, int]
    orphan_data: tuple[Any, ...] = ()
    expansion_overrides: dict[str, str] = field(default_factory=dict)

    def children_of(self, parent_id: str | None) -> tuple[TreeNode, ...]:
        """Visible children of a node, or the roots for ``None``."""
        if parent_id is None:
            return self.roots
        node = self.nodes_by_id.get(parent_id)
        return node.children if node is not None else ()


@dataclass(frozen=True)
class CollapsedIndexes:
    """Index mapping of a build with one node's subtree taken out."""

    nodes_by_index: dict[int, TreeNode]
    indexes_by_id: dict[str, int]
    tree_size: int
