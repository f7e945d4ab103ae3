"""Protocols for the callbacks a host wires into the engine."""

from typing import Any, Protocol, runtime_checkable

from ordered_tree.models.drag import NodeChange


@runtime_checkable
class NodeListener(Protocol):
    """Receives changes to one node's visible children."""

    def __call__(self, change: NodeChange) -> None: ...


@runtime_checkable
class MoveHandler(Protocol):
    """Persists a committed move; the host then supplies new data."""

    def __call__(self, node_id: str, new_order: float, new_parent_id: str | None) -> None: ...


@runtime_checkable
class BulkOrderHandler(Protocol):
    """Persists orders the engine had to assign to several records at once."""

    def __call__(self, orders_by_id: dict[str, float]) -> None: ...


class ClickHandler(Protocol):
    def __call__(self, datum: Any) -> None: ...


class DroppingHandler(Protocol):
    def __call__(self, is_dropping: bool) -> None: ...
