"""Idempotent count event submission."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from inventory_counting.domain.counting import CountEvent, ItemTotal
from inventory_counting.domain.errors import (
    InventoryValidationError,
    SessionStateConflictError,
)
from inventory_counting.domain.identifiers import normalize_identifier
from inventory_counting.domain.sessions import Participant
from inventory_counting.services.participants import ParticipantRegistry
from inventory_counting.services.sessions import SessionService
from inventory_counting.services.totals import EventReader, TotalsAggregator

logger = logging.getLogger(__name__)


class CountEventRepository(EventReader, Protocol):
    """Persistence interface for the append-only event log."""

    def append_events(
        self, session_id: UUID, created_by: str, events: list[CountEvent]
    ) -> None:
        """Insert events, silently skipping (session_id, event_id) already stored.

        The session status check and the insert must be atomic: raise
        ``SessionStateConflictError`` if the session is no longer active and
        ``SessionNotFoundError`` if it is gone.
        """


@dataclass(frozen=True)
class EventSubmission:
    """A client-submitted candidate event."""

    event_id: str
    item_key: str
    delta: int
    timestamp: datetime | None = None
    actor_id: str | None = None


@dataclass(frozen=True)
class SubmitResult:
    """Response to a batch submission."""

    accepted_count: int
    totals: list[ItemTotal]
    participants: list[Participant]
    last_sync_at: datetime


@dataclass
class CountEventLog:
    """Accepts batches of count events with exactly-once effect."""

    repository: CountEventRepository
    session_service: SessionService
    participant_registry: ParticipantRegistry
    totals_aggregator: TotalsAggregator
    max_batch_events: int = 500

    def submit_events(
        self,
        session_id: UUID,
        actor_id: str,
        actor_name: str | None,
        events: list[EventSubmission],
    ) -> SubmitResult:
        """Record a batch of events and return refreshed totals.

        Retrying a batch is always safe: events already stored under the
        same event id are ignored by the store.
        """
        actor = actor_id.strip()
        self._validate(actor, events)
        self.session_service.require_active(session_id)

        now = datetime.now(tz=UTC)
        cleaned = [
            CountEvent(
                event_id=event.event_id.strip(),
                actor_id=(event.actor_id or "").strip() or actor,
                item_key=normalize_identifier(event.item_key),
                delta_qty=event.delta,
                event_ts=event.timestamp or now,
            )
            for event in events
        ]
        cleaned = [event for event in cleaned if event.item_key and event.delta_qty]

        if cleaned:
            try:
                self.repository.append_events(session_id, actor, cleaned)
            except SessionStateConflictError:
                logger.warning(
                    "Rejected %d events from %s: session %s closed mid-submit",
                    len(cleaned),
                    actor,
                    session_id,
                )
                raise
        self.participant_registry.upsert(session_id, actor, actor_name)
        last_sync_at = self.session_service.record_sync(session_id)
        state = self.totals_aggregator.compute_state(session_id)
        logger.info(
            "Committed %d events from %s to session %s",
            len(cleaned),
            actor,
            session_id,
        )
        return SubmitResult(
            accepted_count=len(cleaned),
            totals=state.totals,
            participants=state.participants,
            last_sync_at=last_sync_at,
        )

    def _validate(self, actor: str, events: list[EventSubmission]) -> None:
        field_errors: dict[str, str] = {}
        if not actor:
            field_errors["actor_id"] = "required"
        if len(events) > self.max_batch_events:
            field_errors["events"] = f"at most {self.max_batch_events} per batch"
        for index, event in enumerate(events):
            if not (event.event_id or "").strip():
                field_errors[f"events[{index}].event_id"] = "required"
            if isinstance(event.delta, bool) or not isinstance(event.delta, int):
                field_errors[f"events[{index}].delta"] = "must be an integer"
        if field_errors:
            raise InventoryValidationError("Invalid event batch", field_errors)
