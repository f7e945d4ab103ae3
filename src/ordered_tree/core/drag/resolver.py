"""Turn a hover position and pointer delta into a structural edit.

Everything here is pure: the session hands in the index mapping (with the
dragged node's subtree taken out) and gets back a DragTarget.
"""

import math
from collections.abc import Callable, Mapping
from dataclasses import replace

from ordered_tree.config import DEPTH_DRIFT_PX, MAX_TREE_DEPTH
from ordered_tree.errors import InvariantError, ensure
from ordered_tree.models.drag import Direction, DragTarget
from ordered_tree.models.node import TreeNode


def get_drag(
    nodes_by_index: Mapping[int, TreeNode],
    down_index: int,
    hover_index: int,
    dx: float,
    dy: float,
    is_collapsed: Callable[[TreeNode], bool],
    is_last_child: Callable[[str], bool],
    *,
    nodes_by_id: Mapping[str, TreeNode] | None = None,
    depth_drift_px: float = DEPTH_DRIFT_PX,
    max_depth: int = MAX_TREE_DEPTH,
) -> DragTarget:
    """Decide where the dragged row would be inserted.

    Args:
        nodes_by_index: Rows by index, the dragged node's subtree excluded.
        down_index: Index of the dragged node.
        hover_index: Index of the row under the pointer.
        dx: Horizontal pointer travel since mouse-down.
        dy: Vertical pointer travel since mouse-down.
        is_collapsed: Whether a node hides its children.
        is_last_child: Whether nothing follows a node among its siblings.
        nodes_by_id: Lookup for ancestors; derived from ``nodes_by_index``
            when omitted.
        depth_drift_px: Horizontal travel per depth level.
        max_depth: Deepest ancestor chain accepted.
    """
    if dx == 0 and dy == 0:
        return DragTarget(move="nowhere")

    hover_node = nodes_by_index.get(hover_index)
    if hover_node is None:
        return DragTarget(move="nowhere")

    down_node = ensure(nodes_by_index.get(down_index), f"No node at down index {down_index} (%s)")

    direction: Direction = "nowhere"
    if hover_index > down_index:
        direction = "down"
    elif hover_index < down_index:
        direction = "up"

    base = DragTarget(
        move="nowhere",
        drag_direction=direction,
        hover_node=hover_node,
        down_node=down_node,
    )

    if direction == "down":
        node_above = hover_node
    else:
        previous = nodes_by_index.get(hover_index - 1)
        if previous is None and direction == "nowhere":
            # Sideways on the first row.
            return base
        if previous is None:
            return _with(base, move="before", relative_to=hover_node)
        node_above = previous

    above_depth = node_above.depth
    raw_depth = down_node.depth + dx / depth_drift_px
    target_depth = max(0, min(math.floor(raw_depth + 0.5), above_depth + 1))
    base = _with(base, target_depth=raw_depth, rounded_target_depth=target_depth)

    if target_depth > above_depth and not is_collapsed(node_above):
        return _with(base, move="first-child", relative_to=node_above)

    dragging_only_child = (
        len(node_above.children) == 1 and node_above.children[0].id == down_node.id
    )
    if node_above.children and not dragging_only_child:
        return _with(base, move="first-child", relative_to=node_above)

    if nodes_by_id is None:
        nodes_by_id = {node.id: node for node in nodes_by_index.values()}
    chain = get_ancestor_chain(node_above, target_depth, nodes_by_id, max_depth=max_depth)
    return _with(base, move="after", relative_to=_last_child_ancestor(chain, is_last_child))


def _with(target: DragTarget, **changes: object) -> DragTarget:
    return replace(target, **changes)


def _last_child_ancestor(chain: list[TreeNode], is_last_child: Callable[[str], bool]) -> TreeNode:
    """First ancestor in ``chain`` whose descendant on the chain is a last child.

    Inserting after that ancestor puts the node right below the row above.
    Falls back to the end of the chain (the row above itself).
    """
    for ancestor, descendant in zip(chain, chain[1:]):
        if is_last_child(descendant.id):
            return ancestor
    return chain[-1]


def get_ancestor_chain(
    node: TreeNode,
    target_depth: int,
    nodes_by_id: Mapping[str, TreeNode],
    *,
    max_depth: int = MAX_TREE_DEPTH,
) -> list[TreeNode]:
    """Ancestors of ``node`` from ``target_depth`` down to ``node`` itself.

    If the parent ids of ``node`` are ``("mom", "grandma", "gamgam")`` then
    gamgam is at depth 0 and ``node`` at depth 3; a target depth of 1 gives
    ``[grandma, mom, node]``.
    """
    if node.depth > max_depth:
        msg = f"Node {node.id} is {node.depth} levels deep, deeper than {max_depth}"
        raise InvariantError(msg)

    if target_depth >= node.depth:
        return [node]

    chain: list[TreeNode] = []
    for depth in range(max(target_depth, 0), node.depth):
        ancestor_id = node.parent_ids[node.depth - depth - 1]
        ancestor = nodes_by_id.get(ancestor_id)
        chain.append(ensure(ancestor, f"Ancestor {ancestor_id} of {node.id} is %s"))
    chain.append(node)
    return chain
