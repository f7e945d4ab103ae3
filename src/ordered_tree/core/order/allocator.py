"""Fractional order keys: infill, placement between siblings, renumbering.

Orders are floats in ``(0, 1)``. A new position is always the midpoint of the
gap it lands in, so every insertion at either end of a sibling list halves the
remaining room. Near ``1`` precision runs out after a few dozen such drags,
near ``0`` after several hundred. ``is_lacking_precision`` detects that point
and ``defragment_orders`` renumbers a sibling group evenly.
"""

import sys
from collections.abc import Callable, Sequence
from functools import cmp_to_key
from typing import Any, Literal, TypeVar

from ordered_tree.errors import InvariantError, PrecisionExhaustedError, ensure
from ordered_tree.models.node import TreeNode

T = TypeVar("T")

Placement = Literal["before", "after", "first-child"]

# Smallest positive (subnormal) double.
MIN_ORDER = 5e-324


def sort_siblings(
    siblings: Sequence[Any],
    missing_orders_by_id: dict[str, float],
    *,
    get_id: Callable[[Any], str],
    get_order: Callable[[Any], float | None],
    compare: Callable[[Any, Any], int],
) -> list[Any]:
    """Return siblings in ascending order, back-filling missing orders.

    Unordered siblings are sorted with ``compare`` and spread evenly below the
    first explicit order (or below 1 when nothing is ordered). Their new
    orders are written into ``missing_orders_by_id``.
    """
    ordered = sorted((s for s in siblings if get_order(s) is not None), key=get_order)
    unordered = sorted(
        (s for s in siblings if get_order(s) is None),
        key=cmp_to_key(compare),
    )

    first_order = get_order(ordered[0]) if ordered else 1.0
    gap = first_order / (len(unordered) + 1)

    for position, datum in enumerate(unordered, start=1):
        missing_orders_by_id[get_id(datum)] = gap * position

    return [*unordered, *ordered]


def place_within_siblings(
    direction: Placement,
    relative_to_id: str | None,
    siblings: Sequence[TreeNode],
    missing_orders_by_id: dict[str, float],
    get_order: Callable[[Any], float | None],
) -> float:
    """Return an order for a node placed relative to one of ``siblings``.

    Args:
        direction: ``before``/``after`` the sibling with ``relative_to_id``, or
            ``first-child`` (then ``siblings`` are the new parent's children).
        relative_to_id: Id of the reference sibling; ignored for first-child.
        siblings: Sibling nodes in ascending order.
        missing_orders_by_id: Orders back-filled by the build.
        get_order: Accessor for explicit record orders.

    Returns:
        The midpoint of the gap the node lands in.
    """

    def order_at(position: int) -> float:
        sibling = siblings[position]
        order = missing_orders_by_id.get(sibling.id)
        if order is None:
            order = get_order(sibling.data)
        return ensure(
            order,
            f"Can't place a node among unordered siblings (sibling {sibling.id} has order %s)",
        )

    if direction == "first-child":
        if not siblings:
            return 0.5
        return order_at(0) / 2

    position = next(
        (i for i, sibling in enumerate(siblings) if sibling.id == relative_to_id),
        None,
    )
    if position is None:
        msg = f"Could not find relative sibling {relative_to_id!r} among siblings"
        raise InvariantError(msg)

    if direction == "before":
        order_after = order_at(position)
        order_before = order_at(position - 1) if position > 0 else 0.0
    elif direction == "after":
        order_before = order_at(position)
        order_after = order_at(position + 1) if position < len(siblings) - 1 else 1.0
    else:
        msg = f"Bad placement direction {direction!r}"
        raise InvariantError(msg)

    return order_before + (order_after - order_before) / 2


def is_lacking_precision(order: float) -> bool:
    """Whether ``order`` is too close to 0 or 1 to be subdivided again."""
    if order <= MIN_ORDER:
        return True
    return 1 - order <= sys.float_info.epsilon


def check_precision(order: float, node_id: str) -> None:
    """Raise PrecisionExhaustedError if ``order`` cannot be subdivided again."""
    if is_lacking_precision(order):
        msg = (
            f"Order {order!r} for node {node_id} is at the limit of float precision; "
            "its siblings need to be renumbered"
        )
        raise PrecisionExhaustedError(msg, node_id=node_id, order=order)


def defragment_orders(ids: Sequence[str]) -> dict[str, float]:
    """Evenly renumber ``ids`` (already in sibling order) across ``(0, 1)``."""
    count = len(ids)
    return {node_id: (i + 1) / (count + 1) for i, node_id in enumerate(ids)}


def splice_sibling(
    siblings: Sequence[T],
    new_item: T,
    order: float,
    get_order: Callable[[T], float],
) -> list[T]:
    """Return a new list with ``new_item`` before the first sibling at or after ``order``."""
    position = next(
        (i for i, sibling in enumerate(siblings) if get_order(sibling) >= order),
        len(siblings),
    )
    return [*siblings[:position], new_item, *siblings[position:]]
