"""Participant registry for counting sessions."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from inventory_counting.domain.sessions import Participant

DEFAULT_DISPLAY_NAME = "Counter"


class ParticipantRepository(Protocol):
    """Persistence interface for session participants."""

    def upsert_participant(
        self,
        session_id: UUID,
        participant_id: str,
        display_name: str,
        seen_at: datetime,
    ) -> None:
        """Create the membership or refresh its name and last-seen time."""

    def list_participants(self, session_id: UUID) -> list[Participant]:
        """Return participants of a session in join order."""


@dataclass
class ParticipantRegistry:
    """Tracks who is contributing to a session. Presence data only."""

    repository: ParticipantRepository

    def upsert(
        self, session_id: UUID, actor_id: str, display_name: str | None
    ) -> None:
        """Register or heartbeat an actor in a session."""
        name = (display_name or "").strip() or DEFAULT_DISPLAY_NAME
        self.repository.upsert_participant(
            session_id=session_id,
            participant_id=actor_id,
            display_name=name,
            seen_at=datetime.now(tz=UTC),
        )

    def list_participants(self, session_id: UUID) -> list[Participant]:
        """Return participants in join order."""
        return self.repository.list_participants(session_id)
