"""Drag session: one pointer-driven drag from mouse-down to settled drop."""

import math
from dataclasses import dataclass, replace

from loguru import logger

from ordered_tree.config import DragConfig
from ordered_tree.core.drag.resolver import get_drag
from ordered_tree.core.order.allocator import (
    defragment_orders,
    is_lacking_precision,
    place_within_siblings,
    splice_sibling,
)
from ordered_tree.core.tree.builder import build_tree_indexes_with_node_collapsed
from ordered_tree.errors import InvariantError, PrecisionExhaustedError, SessionStateError, ensure
from ordered_tree.models.drag import (
    OFF_TREE,
    ChangeKind,
    DragCounters,
    DragEnd,
    DragTarget,
    ElementBox,
    NodeChange,
    ParentId,
    Point,
    SessionState,
    TreeBox,
)
from ordered_tree.models.node import CollapsedIndexes, DatumFunctions, TreeBuild, TreeNode
from ordered_tree.protocols import (
    BulkOrderHandler,
    ClickHandler,
    DroppingHandler,
    MoveHandler,
    NodeListener,
)


@dataclass(frozen=True)
class DragStart:
    """Everything captured at mouse-down."""

    node: TreeNode
    point: Point
    tree_box: TreeBox
    row_height: float
    original_order: float
    original_depth: int
    indexes: CollapsedIndexes
    element_box: ElementBox | None = None

    @property
    def collapsed_for_drag(self) -> bool:
        return bool(self.node.children)


class DragSession:
    """State machine for a single drag over one tree build.

    The host feeds pointer events in delivery order. Listeners registered per
    node id (``None`` for the roots) are told when that node's visible children
    change; there is one slot per id and the last registration wins.
    """

    def __init__(
        self,
        tree: TreeBuild,
        functions: DatumFunctions,
        *,
        on_node_move: MoveHandler,
        on_bulk_node_order: BulkOrderHandler | None = None,
        on_click: ClickHandler | None = None,
        on_dropping_change: DroppingHandler | None = None,
        config: DragConfig | None = None,
        counters: DragCounters | None = None,
    ) -> None:
        self.tree = tree
        self.functions = functions
        self.on_node_move = on_node_move
        self.on_bulk_node_order = on_bulk_node_order
        self.on_click = on_click
        self.on_dropping_change = on_dropping_change
        self.config = config or DragConfig()
        self.counters = counters or DragCounters()
        self.tree_box: TreeBox | None = None
        self._listeners: dict[str | None, NodeListener] = {}
        self._start: DragStart | None = None
        self._end: DragEnd | None = None
        self._last_point: Point | None = None
        self._dropping = False
        self._ignored_press = False

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self._dropping:
            return SessionState.DROPPING
        if self._start is None:
            return SessionState.IDLE
        if self._end is None:
            return SessionState.ANCHORED
        return SessionState.TRACKING

    @property
    def drag_start(self) -> DragStart | None:
        return self._start

    @property
    def drag_end(self) -> DragEnd | None:
        return self._end

    @property
    def anchor(self) -> TreeNode | None:
        return self._start.node if self._start else None

    @property
    def is_dropping(self) -> bool:
        return self._dropping

    @property
    def is_idle(self) -> bool:
        return self._start is None

    def set_tree_box(self, box: TreeBox | None) -> None:
        self.tree_box = box

    def set_tree(self, tree: TreeBuild) -> None:
        """Swap in a rebuilt tree; settles a pending drop."""
        self.tree = tree
        if self._dropping:
            self.finish_drop()
            return

        start = self._start
        if start is None:
            return

        node = tree.nodes_by_id.get(start.node.id)
        if node is None:
            logger.warning("Dragged node {} vanished from the rebuilt tree", start.node.id)
            self._finish_without_move()
            return
        self._start = replace(
            start, node=node, indexes=build_tree_indexes_with_node_collapsed(tree, node)
        )

    # -- listeners ---------------------------------------------------------

    def add_listener(self, node_id: str | None, listener: NodeListener) -> None:
        """Register the listener for ``node_id``, replacing any previous one."""
        self._listeners[node_id] = listener

    def remove_listener(self, node_id: str | None, listener: NodeListener) -> None:
        """Remove the listener for ``node_id`` if it is still ``listener``."""
        if self._listeners.get(node_id) is listener:
            del self._listeners[node_id]

    def _notify(self, node_id: ParentId, change: NodeChange) -> None:
        if node_id is OFF_TREE:
            return
        listener = self._listeners.get(node_id)
        if listener is None:
            return
        self.counters.notifications += 1
        listener(change)

    # -- pointer events ----------------------------------------------------

    def handle_mouse_down(
        self, node_id: str, point: Point, element_box: ElementBox | None = None
    ) -> bool:
        """Anchor a drag on ``node_id``. Returns False when the press is ignored."""
        if self._dropping:
            logger.debug("Ignoring mouse-down on {}: previous drop still settling", node_id)
            self._ignored_press = True
            return False
        if self.tree_box is None:
            logger.debug("Ignoring mouse-down on {}: tree box not measured yet", node_id)
            self._ignored_press = True
            return False
        if self._start is not None:
            msg = f"Mouse-down on {node_id} while a drag of {self._start.node.id} is in progress"
            raise SessionStateError(msg)

        node = self.tree.nodes_by_id.get(node_id)
        if node is None:
            msg = f"Mouse-down on {node_id}, which is not a visible node"
            raise SessionStateError(msg)

        order = self.functions.get_order(node.data)
        if order is None:
            order = self.tree.missing_orders_by_id.get(node_id)

        self._start = DragStart(
            node=node,
            point=point,
            tree_box=self.tree_box,
            row_height=self.tree_box.height / max(self.tree.tree_size, 1),
            original_order=ensure(order, f"No order for node {node_id} (%s)"),
            original_depth=node.depth,
            indexes=build_tree_indexes_with_node_collapsed(self.tree, node),
            element_box=element_box,
        )
        self._ignored_press = False
        self._end = None
        self._last_point = point
        logger.debug("Anchored drag on {} at ({}, {})", node_id, point.x, point.y)
        return True

    def handle_mouse_move(self, point: Point) -> DragEnd | None:
        """Recompute the drop position; notifies only nodes whose children changed."""
        self.counters.moves_received += 1
        start = self._start
        if start is None or self._dropping:
            return None

        last = self._last_point or start.point
        if (
            abs(point.x - last.x) < self.config.sub_pixel_px
            and abs(point.y - last.y) < self.config.sub_pixel_px
        ):
            return self._end
        self._last_point = point

        dx = point.x - start.point.x
        dy = point.y - start.point.y
        distance = dx * dx + dy * dy
        hover_index = math.floor((point.y - start.tree_box.top) / start.row_height)

        target = get_drag(
            start.indexes.nodes_by_index,
            start.indexes.indexes_by_id[start.node.id],
            hover_index,
            dx,
            dy,
            is_collapsed=lambda node: node.is_collapsed,
            is_last_child=self._is_last_child,
            nodes_by_id=self.tree.nodes_by_id,
            depth_drift_px=self.config.depth_drift_px,
            max_depth=self.config.max_depth,
        )
        self.counters.moves_resolved += 1

        if 0 <= hover_index < start.indexes.tree_size:
            new_end = self._resolve_drag_end(start, target, distance)
        else:
            new_end = DragEnd(
                order=start.original_order,
                parent_id=OFF_TREE,
                new_depth=start.original_depth,
                did_move=False,
                drag_distance=distance,
            )

        previous = self._end
        self._end = new_end
        if previous == new_end:
            return new_end

        logger.debug(
            "Drag {} -> {} {} (parent={}, order={!r}, depth={})",
            start.node.id,
            target.move,
            target.relative_to.id if target.relative_to else None,
            new_end.parent_id,
            new_end.order,
            new_end.new_depth,
        )

        if previous is None and start.collapsed_for_drag:
            self._notify(start.node.id, NodeChange(ChangeKind.COLLAPSED_FOR_DRAG))

        old_parent_id: ParentId = previous.parent_id if previous else OFF_TREE
        if previous is not None and old_parent_id != new_end.parent_id:
            self._notify(old_parent_id, NodeChange(ChangeKind.PLACEHOLDER_LEFT))

        if (
            previous is None
            or new_end.parent_id != old_parent_id
            or new_end.order != previous.order
        ):
            self._notify(
                new_end.parent_id, NodeChange(ChangeKind.PLACEHOLDER_ENTERED, new_end.order)
            )

        return new_end

    def handle_mouse_up(self, point: Point | None = None) -> bool:
        """Release the drag. Returns True if a move was committed.

        The release that follows an ignored mouse-down is ignored too.
        """
        if self._ignored_press:
            self._ignored_press = False
            logger.debug("Ignoring mouse-up that ends an ignored mouse-down")
            return False
        start = self._start
        if start is None or self._dropping:
            msg = "Got a mouse-up but no drag was started"
            raise SessionStateError(msg)

        end = self._end
        if point is not None:
            dx = point.x - start.point.x
            dy = point.y - start.point.y
            distance = dx * dx + dy * dy
            if end is not None:
                end = self._end = replace(end, drag_distance=distance)
        else:
            distance = end.drag_distance if end else 0.0

        if end is None or distance < self.config.click_distance_sq:
            self.counters.clicks += 1
            self._finish_without_move()
            if self.on_click is not None:
                self.on_click(start.node.data)
            return False

        if end.parent_id is OFF_TREE or not end.did_move:
            logger.debug("Drag of {} released without a move", start.node.id)
            self._finish_without_move()
            return False

        if is_lacking_precision(end.order):
            end = self._defragment(start, end)

        parent_id = _placed_parent_id(end)

        self._dropping = True
        self.counters.drops += 1
        if self.on_dropping_change is not None:
            self.on_dropping_change(True)
        self._notify(parent_id, NodeChange(ChangeKind.DROPPED, end.order))

        logger.info(
            "Moved {} to order {!r} under {}", start.node.id, end.order, parent_id or "the root"
        )
        self.on_node_move(start.node.id, end.order, parent_id)
        return True

    def finish_drop(self) -> None:
        """Leave the dropping state once the host has supplied a rebuilt tree."""
        if not self._dropping:
            return
        start = ensure(self._start, "Dropping without a drag start (%s)")
        end = ensure(self._end, "Dropping without a drag end (%s)")

        old_parent_id = start.node.parent_id
        self._notify(old_parent_id, NodeChange(ChangeKind.SETTLED))
        if end.parent_id != old_parent_id:
            self._notify(end.parent_id, NodeChange(ChangeKind.SETTLED))
        if start.collapsed_for_drag:
            self._notify(start.node.id, NodeChange(ChangeKind.EXPANDED_AFTER_DRAG))

        self._clear()
        if self.on_dropping_change is not None:
            self.on_dropping_change(False)

    def drag_offset(self) -> Point | None:
        """Where the dragged row's top-left corner should be drawn."""
        start = self._start
        if start is None or self._last_point is None:
            return None
        dx = self._last_point.x - start.point.x
        dy = self._last_point.y - start.point.y
        row_top = start.tree_box.top + start.node.index * start.row_height
        return Point(start.tree_box.left + dx, row_top + dy)

    # -- internals ---------------------------------------------------------

    def _clear(self) -> None:
        self._start = None
        self._end = None
        self._last_point = None
        self._dropping = False

    def _finish_without_move(self) -> None:
        start, end = self._start, self._end
        self._clear()
        if start is None or end is None:
            return
        self._notify(end.parent_id, NodeChange(ChangeKind.PLACEHOLDER_LEFT))
        if start.collapsed_for_drag:
            self._notify(start.node.id, NodeChange(ChangeKind.EXPANDED_AFTER_DRAG))

    def _is_last_child(self, node_id: str) -> bool:
        """Last child among siblings, not counting the node being dragged."""
        node = self.tree.nodes_by_id[node_id]
        siblings = self.tree.children_of(node.parent_id)
        anchor_id = self._start.node.id if self._start else None
        position = next(i for i, sibling in enumerate(siblings) if sibling.id == node_id)
        return all(sibling.id == anchor_id for sibling in siblings[position + 1 :])

    def _resolve_drag_end(self, start: DragStart, target: DragTarget, distance: float) -> DragEnd:
        anchor = start.node
        stay = DragEnd(
            order=start.original_order,
            parent_id=anchor.parent_id,
            new_depth=start.original_depth,
            did_move=False,
            drag_distance=distance,
        )
        if target.move == "nowhere":
            return stay

        relative_to = ensure(target.relative_to, f"{target.move} move without a relative node (%s)")
        get_order = self.functions.get_order
        missing = self.tree.missing_orders_by_id

        if target.move == "first-child":
            siblings = relative_to.children
            if relative_to.id == anchor.parent_id and siblings and siblings[0].id == anchor.id:
                return stay
            order = place_within_siblings("first-child", None, siblings, missing, get_order)
            return DragEnd(order, relative_to.id, relative_to.depth + 1, drag_distance=distance)

        parent_id = relative_to.parent_id
        siblings = self.tree.children_of(parent_id)
        if parent_id == anchor.parent_id:
            ids = [sibling.id for sibling in siblings]
            position = ids.index(anchor.id)
            previous_id = ids[position - 1] if position > 0 else None
            next_id = ids[position + 1] if position + 1 < len(ids) else None
            if (
                relative_to.id == anchor.id
                or (target.move == "after" and relative_to.id == previous_id)
                or (target.move == "before" and relative_to.id == next_id)
            ):
                return stay
        order = place_within_siblings(target.move, relative_to.id, siblings, missing, get_order)
        return DragEnd(order, parent_id, relative_to.depth, drag_distance=distance)

    def _defragment(self, start: DragStart, end: DragEnd) -> DragEnd:
        """Renumber the destination siblings when ``end.order`` ran out of precision."""
        logger.warning(
            "Order {!r} for {} is at the limit of float precision", end.order, start.node.id
        )
        on_bulk_node_order = self.on_bulk_node_order
        if not self.config.defragment or on_bulk_node_order is None:
            self._finish_without_move()
            msg = (
                f"Order {end.order!r} for node {start.node.id} is at the limit of float precision "
                "and its siblings cannot be renumbered"
            )
            raise PrecisionExhaustedError(msg, node_id=start.node.id, order=end.order)

        parent_id = _placed_parent_id(end)
        siblings = [s for s in self.tree.children_of(parent_id) if s.id != start.node.id]
        placed = splice_sibling(siblings, start.node, end.order, lambda node: node.order)
        orders = defragment_orders([node.id for node in placed])
        order = orders.pop(start.node.id)

        logger.info("Renumbered {} siblings under {}", len(placed), parent_id or "the root")
        if orders:
            on_bulk_node_order(orders)
        end = replace(end, order=order)
        self._end = end
        return end


def _placed_parent_id(end: DragEnd) -> str | None:
    """The parent a committed drop lands under."""
    parent_id = end.parent_id
    if parent_id is OFF_TREE:
        msg = "A drop was committed for a drag end that is off the tree"
        raise InvariantError(msg)
    return parent_id
