"""Reconciliation and finalization of counting sessions."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from inventory_counting.domain.counting import ItemTotal
from inventory_counting.domain.errors import (
    InventoryValidationError,
    SessionStateConflictError,
)
from inventory_counting.domain.identifiers import normalize_identifier
from inventory_counting.domain.reconciliation import (
    FinalizeResult,
    ManualOverride,
    apply_overrides,
    compute_mismatches,
)
from inventory_counting.domain.sessions import InventorySession, SessionStatus
from inventory_counting.services.sessions import OPEN_ACCESS_ACTOR, SessionService
from inventory_counting.services.totals import TotalsAggregator

logger = logging.getLogger(__name__)


class OverrideRepository(Protocol):
    """Persistence interface for manual overrides."""

    def upsert_override(self, override: ManualOverride) -> ManualOverride:
        """Create or replace the override for (session, item)."""

    def delete_override(self, session_id: UUID, item_key: str) -> None:
        """Remove the override for (session, item), if any."""

    def list_overrides(self, session_id: UUID) -> list[ManualOverride]:
        """Return all overrides of a session."""


class SnapshotRepository(Protocol):
    """Persistence interface for final snapshot rows."""

    def replace_final_items(
        self,
        session_id: UUID,
        items: list[ItemTotal],
        finalized_by: str,
        finalized_at: datetime,
    ) -> None:
        """Make the given items the whole snapshot of the session.

        Rows for items missing from ``items`` are removed, so a repeated
        finalize leaves no stale rows behind.
        """

    def list_final_items(self, session_id: UUID) -> list[ItemTotal]:
        """Return snapshot rows ordered by item key."""


@dataclass
class FinalizationService:
    """Freezes session totals and compares them with the last locked count."""

    session_service: SessionService
    totals_aggregator: TotalsAggregator
    override_repository: OverrideRepository
    snapshot_repository: SnapshotRepository

    def finalize(
        self, session_id: UUID, finalized_by: str | None = None, lock: bool = True
    ) -> FinalizeResult:
        """Persist the final snapshot and report changes against the baseline.

        Event acceptance is closed before totals are read, so the snapshot
        reflects every event committed before the call. Calling again before
        the session is locked rewrites the snapshot in place.
        """
        actor = (finalized_by or "").strip() or OPEN_ACCESS_ACTOR
        self.session_service.begin_finalize(session_id)

        state = self.totals_aggregator.compute_state(session_id)
        overrides = self.override_repository.list_overrides(session_id)
        totals = apply_overrides(state.totals, overrides)
        self.snapshot_repository.replace_final_items(
            session_id, totals, actor, datetime.now(tz=UTC)
        )

        # Without a locked predecessor there is nothing to compare against.
        baseline = self.session_service.find_baseline(session_id)
        mismatches = (
            compute_mismatches(
                totals, self.snapshot_repository.list_final_items(baseline.id)
            )
            if baseline
            else []
        )

        session = self.session_service.complete_finalize(session_id, lock)
        logger.info(
            "Finalized session %s as %s by %s: %d items, %d overrides, "
            "%d mismatches against %s",
            session_id,
            session.status.value,
            actor,
            len(totals),
            len(overrides),
            len(mismatches),
            baseline.id if baseline else "no baseline",
        )
        return FinalizeResult(totals=totals, mismatches=mismatches)

    def set_override(  # noqa: PLR0913
        self,
        session_id: UUID,
        item_key: str,
        quantity: int,
        overridden_by: str | None = None,
        reason: str | None = None,
    ) -> ManualOverride:
        """Set the authoritative final quantity for one item."""
        key = normalize_identifier(item_key)
        if not key:
            raise InventoryValidationError(
                "item_key is required", {"item_key": "required"}
            )
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InventoryValidationError(
                "quantity must be an integer", {"quantity": "must be an integer"}
            )
        self._require_unlocked(session_id)
        return self.override_repository.upsert_override(
            ManualOverride(
                session_id=session_id,
                item_key=key,
                override_qty=quantity,
                overridden_by=(overridden_by or "").strip() or OPEN_ACCESS_ACTOR,
                reason=(reason or "").strip() or None,
            )
        )

    def clear_override(self, session_id: UUID, item_key: str) -> None:
        """Drop the override for one item."""
        key = normalize_identifier(item_key)
        if not key:
            raise InventoryValidationError(
                "item_key is required", {"item_key": "required"}
            )
        self._require_unlocked(session_id)
        self.override_repository.delete_override(session_id, key)

    def list_overrides(self, session_id: UUID) -> list[ManualOverride]:
        """Return overrides for a session."""
        self.session_service.get_session(session_id)
        return self.override_repository.list_overrides(session_id)

    def get_final_items(self, session_id: UUID) -> list[ItemTotal]:
        """Return the finalized snapshot for a session."""
        self.session_service.get_session(session_id)
        return self.snapshot_repository.list_final_items(session_id)

    def _require_unlocked(self, session_id: UUID) -> InventorySession:
        session = self.session_service.get_session(session_id)
        if session.status is SessionStatus.LOCKED:
            raise SessionStateConflictError(
                f"Session {session_id} is locked; overrides are frozen"
            )
        return session
