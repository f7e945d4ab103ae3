"""Configuration constants for the ordered tree engine."""

from dataclasses import dataclass

# Horizontal pointer travel (px) that moves a dragged row one level deeper.
DEPTH_DRIFT_PX: float = 40.0

# A release closer than this (squared px) to the anchor is a click, not a drag.
CLICK_DISTANCE_SQ: float = 2.0

# Pointer moves smaller than this on both axes are not processed.
SUB_PIXEL_PX: float = 1.0

# Ancestor chains longer than this are treated as corrupt data.
MAX_TREE_DEPTH: int = 64

# Renumber a sibling group instead of failing when an order key runs out of
# float precision.
DEFRAGMENT_ON_EXHAUSTION: bool = True


@dataclass(frozen=True)
class DragConfig:
    """Tunables for a drag session."""

    depth_drift_px: float = DEPTH_DRIFT_PX
    click_distance_sq: float = CLICK_DISTANCE_SQ
    sub_pixel_px: float = SUB_PIXEL_PX
    max_depth: int = MAX_TREE_DEPTH
    defragment: bool = DEFRAGMENT_ON_EXHAUSTION
