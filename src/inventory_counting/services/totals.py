"""Totals aggregation over the session event log."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from inventory_counting.domain.counting import (
    RecordedDelta,
    SessionState,
    aggregate_contributions,
    aggregate_totals,
)
from inventory_counting.services.participants import ParticipantRegistry
from inventory_counting.services.sessions import SessionService


class EventReader(Protocol):
    """Read side of the count event log."""

    def list_deltas(self, session_id: UUID) -> list[RecordedDelta]:
        """Return every recorded event of a session from one consistent read."""


@dataclass
class TotalsAggregator:
    """Derives per-item and per-actor quantities by summing the event log."""

    session_service: SessionService
    event_reader: EventReader
    participant_registry: ParticipantRegistry

    def compute_state(self, session_id: UUID) -> SessionState:
        """Return the current state of a session. Has no side effects."""
        session = self.session_service.get_session(session_id)
        deltas = self.event_reader.list_deltas(session_id)
        participants = self.participant_registry.list_participants(session_id)
        return SessionState(
            session=session,
            participants=participants,
            totals=aggregate_totals(deltas),
            contributions=aggregate_contributions(deltas),
            pending_event_count=len(deltas),
        )
