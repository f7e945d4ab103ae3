"""Headless ordered tree: owns the data, the current build and the drag session."""

from collections.abc import Collection, Iterator, Sequence
from typing import Any

from loguru import logger

from ordered_tree.config import DragConfig
from ordered_tree.core.drag.session import DragSession
from ordered_tree.core.order.allocator import splice_sibling
from ordered_tree.core.tree.builder import build_tree
from ordered_tree.models.drag import (
    OFF_TREE,
    DragCounters,
    DragEnd,
    ElementBox,
    Expansion,
    Point,
    TreeBox,
    TreeRow,
)
from ordered_tree.models.node import DatumFunctions, TreeBuild, TreeNode
from ordered_tree.protocols import (
    BulkOrderHandler,
    ClickHandler,
    DroppingHandler,
    MoveHandler,
    NodeListener,
)

# Stands in for the drag placeholder while splicing it among sibling nodes.
_PLACEHOLDER = object()


class OrderedTree:
    """A reorderable tree over externally owned records.

    The host supplies records and accessor functions, forwards pointer events,
    persists what ``on_node_move`` and ``on_bulk_node_order`` report and then
    hands back fresh records via ``set_data``. Rows to render come from
    ``rows()`` or, per parent, ``children_of()``.
    """

    def __init__(
        self,
        data: Sequence[Any],
        functions: DatumFunctions,
        *,
        on_node_move: MoveHandler,
        on_bulk_node_order: BulkOrderHandler | None = None,
        on_click: ClickHandler | None = None,
        on_dropping_change: DroppingHandler | None = None,
        config: DragConfig | None = None,
        counters: DragCounters | None = None,
        user_controlled_expansion_ids: Collection[str] = (),
    ) -> None:
        self.functions = functions
        self.on_bulk_node_order = on_bulk_node_order
        self.user_controlled_expansion_ids = tuple(user_controlled_expansion_ids)
        self.data: tuple[Any, ...] = tuple(data)
        self.tree = self._build()
        self.session = DragSession(
            self.tree,
            functions,
            on_node_move=on_node_move,
            on_bulk_node_order=on_bulk_node_order,
            on_click=on_click,
            on_dropping_change=on_dropping_change,
            config=config,
            counters=counters,
        )
        self._report_missing_orders()

    def _build(self) -> TreeBuild:
        return build_tree(
            self.data,
            self.functions,
            user_controlled_expansion_ids=self.user_controlled_expansion_ids,
        )

    def _report_missing_orders(self) -> None:
        missing = self.tree.missing_orders_by_id
        if not missing or self.on_bulk_node_order is None:
            return
        logger.debug("Reporting {} back-filled orders", len(missing))
        self.on_bulk_node_order(dict(missing))

    def set_data(self, data: Sequence[Any]) -> None:
        """Rebuild from new records; settles a drop waiting for them."""
        self.data = tuple(data)
        self.tree = self._build()
        self.session.set_tree(self.tree)
        self._report_missing_orders()

    # -- host events ---------------------------------------------------------

    def set_tree_box(self, box: TreeBox | None) -> None:
        self.session.set_tree_box(box)

    def handle_mouse_down(
        self, datum: Any, point: Point, element_box: ElementBox | None = None
    ) -> bool:
        return self.session.handle_mouse_down(self.functions.get_id(datum), point, element_box)

    def handle_mouse_move(self, point: Point) -> DragEnd | None:
        return self.session.handle_mouse_move(point)

    def handle_mouse_up(self, point: Point | None = None) -> bool:
        return self.session.handle_mouse_up(point)

    def add_listener(self, node_id: str | None, listener: NodeListener) -> None:
        self.session.add_listener(node_id, listener)

    def remove_listener(self, node_id: str | None, listener: NodeListener) -> None:
        self.session.remove_listener(node_id, listener)

    # -- headless state ------------------------------------------------------

    @property
    def is_dropping(self) -> bool:
        return self.session.is_dropping

    @property
    def is_idle(self) -> bool:
        return self.session.is_idle

    def get_key(self, datum: Any, *, is_placeholder: bool = False) -> str:
        prefix = "placeholder-node" if is_placeholder else "ordered-node"
        return f"{prefix}-{self.functions.get_id(datum)}"

    def is_being_dragged(self, node_id: str) -> bool:
        anchor = self.session.anchor
        return anchor is not None and anchor.id == node_id

    def _placeholder_parent_id(self) -> str | None | object:
        end = self.session.drag_end
        if self.session.is_idle or end is None:
            return OFF_TREE
        return end.parent_id

    def expansion(self, node_id: str) -> Expansion:
        """Disclosure state of a node, as the current drag affects it."""
        node = self.tree.nodes_by_id[node_id]
        anchor = self.session.anchor

        if anchor is not None and anchor.id == node_id:
            return "collapsed" if node.child_count else "no children"

        anchor_id = anchor.id if anchor is not None else None
        has_visible_children = any(child.id != anchor_id for child in node.children)
        if has_visible_children or self._placeholder_parent_id() == node_id:
            return "expanded"
        if node.is_collapsed and node.child_count:
            return "collapsed"
        return "no children"

    def children_of(self, parent_id: str | None) -> tuple[TreeRow, ...]:
        """Rows directly under ``parent_id`` (``None`` for the roots)."""
        nodes: Sequence[Any] = self.tree.children_of(parent_id)
        session = self.session
        anchor = session.anchor
        if anchor is None:
            return tuple(self._node_row(node) for node in nodes)

        if parent_id == anchor.id:
            return ()
        if session.is_dropping:
            nodes = [node for node in nodes if node.id != anchor.id]

        end = session.drag_end
        if end is not None and end.parent_id is not OFF_TREE and end.parent_id == parent_id:
            nodes = splice_sibling(nodes, _PLACEHOLDER, end.order, lambda node: node.order)

        return tuple(
            self._placeholder_row(anchor) if node is _PLACEHOLDER else self._node_row(node)
            for node in nodes
        )

    def rows(self) -> list[TreeRow]:
        """Every row in display order."""
        return list(self._walk(None))

    def _walk(self, parent_id: str | None) -> Iterator[TreeRow]:
        for row in self.children_of(parent_id):
            yield row
            if not row.is_placeholder:
                yield from self._walk(row.id)

    def _node_row(self, node: TreeNode) -> TreeRow:
        return TreeRow(
            key=self.get_key(node.data),
            id=node.id,
            data=node.data,
            depth=node.depth,
            expansion=self.expansion(node.id),
            is_being_dragged=self.is_being_dragged(node.id),
        )

    def _placeholder_row(self, anchor: TreeNode) -> TreeRow:
        end = self.session.drag_end
        return TreeRow(
            key=self.get_key(anchor.data, is_placeholder=True),
            id=anchor.id,
            data=anchor.data,
            depth=end.new_depth if end is not None else anchor.depth,
            expansion="collapsed" if anchor.child_count else "no children",
            is_placeholder=True,
        )
