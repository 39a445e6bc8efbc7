"""Final snapshot reconciliation against overrides and the baseline."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from inventory_counting.domain.counting import ItemTotal


@dataclass(frozen=True)
class ManualOverride:
    """Authoritative quantity for one item, applied at finalize time."""

    session_id: UUID
    item_key: str
    override_qty: int
    overridden_by: str
    reason: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Mismatch:
    """Difference between the current and baseline final quantity."""

    item_key: str
    qty: int
    previous_qty: int
    delta: int


@dataclass(frozen=True)
class FinalizeResult:
    """Outcome of a finalize call."""

    totals: list[ItemTotal]
    mismatches: list[Mismatch]


def apply_overrides(
    totals: Iterable[ItemTotal], overrides: Iterable[ManualOverride]
) -> list[ItemTotal]:
    """Replace summed totals with override values where one exists."""
    merged = {total.item_key: total.qty for total in totals}
    for override in overrides:
        merged[override.item_key] = override.override_qty
    return [ItemTotal(item_key=key, qty=qty) for key, qty in sorted(merged.items())]


def compute_mismatches(
    current: Iterable[ItemTotal], baseline: Iterable[ItemTotal]
) -> list[Mismatch]:
    """Compare current finals with the baseline, largest change first.

    Items missing from the baseline count as zero. Only items in the
    current snapshot are reported.
    """
    previous = {row.item_key: row.qty for row in baseline}
    mismatches = []
    for row in current:
        previous_qty = previous.get(row.item_key, 0)
        delta = row.qty - previous_qty
        if delta != 0:
            mismatches.append(
                Mismatch(
                    item_key=row.item_key,
                    qty=row.qty,
                    previous_qty=previous_qty,
                    delta=delta,
                )
            )
    return sorted(mismatches, key=lambda row: (-abs(row.delta), row.item_key))
