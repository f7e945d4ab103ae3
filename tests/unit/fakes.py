"""Fake hosts and listeners for testing the ordered tree."""

from collections.abc import Sequence
from dataclasses import replace

from ordered_tree.models.drag import ChangeKind, NodeChange
from tests.unit.kin import Kin


class RecordingHost:
    """In-memory host that owns Kin records and records every callback.

    ``saved_data()`` returns the records with all reported moves and bulk
    orders applied, the way a real host would after persisting them.
    """

    def __init__(self, data: Sequence[Kin]) -> None:
        self.data = list(data)
        self.moves: list[tuple[str, float, str | None]] = []
        self.bulk_orders: list[dict[str, float]] = []
        self.clicks: list[Kin] = []
        self.dropping_changes: list[bool] = []

    def on_node_move(self, node_id: str, new_order: float, new_parent_id: str | None) -> None:
        self.moves.append((node_id, new_order, new_parent_id))
        self.data = [
            replace(kin, order=new_order, parent_id=new_parent_id) if kin.id == node_id else kin
            for kin in self.data
        ]

    def on_bulk_node_order(self, orders_by_id: dict[str, float]) -> None:
        self.bulk_orders.append(dict(orders_by_id))
        self.data = [
            replace(kin, order=orders_by_id[kin.id]) if kin.id in orders_by_id else kin
            for kin in self.data
        ]

    def on_click(self, datum: Kin) -> None:
        self.clicks.append(datum)

    def on_dropping_change(self, is_dropping: bool) -> None:
        self.dropping_changes.append(is_dropping)

    def saved_data(self) -> list[Kin]:
        return list(self.data)


class RecordingListener:
    """Node listener that keeps every change it receives."""

    def __init__(self) -> None:
        self.changes: list[NodeChange] = []

    def __call__(self, change: NodeChange) -> None:
        self.changes.append(change)

    @property
    def kinds(self) -> list[ChangeKind]:
        return [change.kind for change in self.changes]
