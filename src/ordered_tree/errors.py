"""Exceptions raised by the ordered tree engine."""

from typing import TypeVar

T = TypeVar("T")


class OrderedTreeError(Exception):
    """Base class for all engine errors."""


class StructuralError(OrderedTreeError, ValueError):
    """The flat data cannot be arranged into a tree (no anchor, or a cycle)."""


class SessionStateError(OrderedTreeError, RuntimeError):
    """A pointer event arrived in a state where it makes no sense."""


class PrecisionExhaustedError(OrderedTreeError, ArithmeticError):
    """An order key got too close to 0 or 1 to be subdivided further."""

    def __init__(self, message: str, *, node_id: str, order: float) -> None:
        super().__init__(message)
        self.node_id = node_id
        self.order = order


class InvariantError(OrderedTreeError, AssertionError):
    """An internal consistency check failed."""


def ensure(value: T | None, message: str) -> T:
    """Return ``value``, raising InvariantError if it is None.

    A ``%s`` in the message is replaced with ``None``.
    """
    if value is None:
        raise InvariantError(message.replace("%s", "None"))
    return value
