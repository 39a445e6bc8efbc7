"""Count events and the totals derived from them."""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from inventory_counting.domain.sessions import InventorySession, Participant


@dataclass(frozen=True)
class CountEvent:
    """A single signed quantity adjustment ready to be persisted."""

    event_id: str
    actor_id: str
    item_key: str
    delta_qty: int
    event_ts: datetime


@dataclass(frozen=True)
class RecordedDelta:
    """The parts of a stored event that aggregation needs."""

    actor_id: str
    item_key: str
    delta_qty: int


@dataclass(frozen=True)
class ItemTotal:
    """Quantity for one item."""

    item_key: str
    qty: int


@dataclass(frozen=True)
class Contribution:
    """Quantity one actor contributed to one item."""

    actor_id: str
    item_key: str
    qty: int


@dataclass(frozen=True)
class SessionState:
    """Point-in-time view of a session for clients."""

    session: InventorySession
    participants: list[Participant]
    totals: list[ItemTotal]
    contributions: list[Contribution]
    pending_event_count: int

    @property
    def last_sync_at(self) -> datetime | None:
        return self.session.last_sync_at


def aggregate_totals(deltas: Iterable[RecordedDelta]) -> list[ItemTotal]:
    """Sum deltas per item, ordered by item key."""
    sums: dict[str, int] = defaultdict(int)
    for delta in deltas:
        sums[delta.item_key] += delta.delta_qty
    return [ItemTotal(item_key=key, qty=qty) for key, qty in sorted(sums.items())]


def aggregate_contributions(deltas: Iterable[RecordedDelta]) -> list[Contribution]:
    """Sum deltas per (actor, item), ordered by actor then item."""
    sums: dict[tuple[str, str], int] = defaultdict(int)
    for delta in deltas:
        sums[(delta.actor_id, delta.item_key)] += delta.delta_qty
    return [
        Contribution(actor_id=actor_id, item_key=item_key, qty=qty)
        for (actor_id, item_key), qty in sorted(sums.items())
    ]
