"""Render tree rows as a compact text outline.

Each row becomes ``<dashes><marker> <label>;`` where the dashes give the
depth and the marker is ``v`` (expanded), ``>`` (collapsed) or ``-`` (no
children)::

    v Parent;
    -v Child;
    --- Grandchild;
    - Second;
"""

import io
from collections.abc import Callable, Iterable
from typing import Any

from ordered_tree.core.tree.builder import iter_nodes
from ordered_tree.models.drag import Expansion, TreeRow
from ordered_tree.models.node import TreeBuild, TreeNode

_MARKERS: dict[str, str] = {"expanded": "v", "collapsed": ">", "no children": "-"}


def format_row(depth: int, expansion: str, text: str) -> str:
    return f"{'-' * depth}{_MARKERS[expansion]} {text};"


def render_outline(rows: Iterable[TreeRow], *, label: Callable[[Any], str]) -> str:
    """Render rows, including any drag placeholder, one per line."""
    out = io.StringIO()
    for row in rows:
        text = label(row.data)
        if row.is_placeholder:
            text = f"Placeholder for {text}"
        out.write(format_row(row.depth, row.expansion, text) + "\n")
    return out.getvalue()


def node_expansion(node: TreeNode) -> Expansion:
    if node.children:
        return "expanded"
    if node.child_count:
        return "collapsed"
    return "no children"


def render_build(build: TreeBuild, *, label: Callable[[Any], str]) -> str:
    """Render an idle build in index order."""
    out = io.StringIO()
    for node in iter_nodes(build):
        out.write(format_row(node.depth, node_expansion(node), label(node.data)) + "\n")
    return out.getvalue()
