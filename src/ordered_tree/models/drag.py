"""Value types exchanged during a drag."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from ordered_tree.models.node import TreeNode

Move = Literal["before", "after", "first-child", "nowhere"]
Direction = Literal["up", "down", "nowhere"]
Expansion = Literal["expanded", "collapsed", "no children"]


class _OffTree(Enum):
    OFF_TREE = "off-tree"


# Parent id of a drag that left the tree: releasing there changes nothing.
OFF_TREE = _OffTree.OFF_TREE

ParentId = str | None | _OffTree


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class TreeBox:
    """Measured box of the whole tree, holding ``tree_size`` equal rows."""

    top: float
    left: float
    height: float


@dataclass(frozen=True)
class ElementBox:
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class DragTarget:
    """Structural edit implied by the current pointer position."""

    move: Move
    drag_direction: Direction = "nowhere"
    relative_to: TreeNode | None = None
    target_depth: float | None = None
    rounded_target_depth: int | None = None
    hover_node: TreeNode | None = None
    down_node: TreeNode | None = None


@dataclass(frozen=True)
class DragEnd:
    """Where the dragged node would land if released now."""

    order: float
    parent_id: ParentId
    new_depth: int
    did_move: bool = True
    drag_distance: float = field(default=0.0, compare=False)


class ChangeKind(Enum):
    PLACEHOLDER_ENTERED = "placeholder-entered"
    PLACEHOLDER_LEFT = "placeholder-left"
    DROPPED = "dropped"
    SETTLED = "settled"
    COLLAPSED_FOR_DRAG = "collapsed-for-drag"
    EXPANDED_AFTER_DRAG = "expanded-after-drag"


@dataclass(frozen=True)
class NodeChange:
    """Notification sent to the listener registered for a node id."""

    kind: ChangeKind
    order: float | None = None


class SessionState(Enum):
    IDLE = "idle"
    ANCHORED = "anchored"
    TRACKING = "tracking"
    DROPPING = "dropping"


@dataclass(frozen=True)
class TreeRow:
    """One rendered row of the tree, including the drag placeholder."""

    key: str
    id: str
    data: Any
    depth: int
    expansion: Expansion
    is_placeholder: bool = False
    is_being_dragged: bool = False


@dataclass
class DragCounters:
    """Counters a test harness can hand to a session to watch its work."""

    moves_received: int = 0
    moves_resolved: int = 0
    notifications: int = 0
    drops: int = 0
    clicks: int = 0
