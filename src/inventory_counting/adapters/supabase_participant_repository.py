"""Supabase-backed participant repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from inventory_counting.adapters.supabase_support import execute, parse_timestamp
from inventory_counting.domain.sessions import Participant
from inventory_counting.services.participants import ParticipantRepository

_TABLE = "inventory_session_participants"


@dataclass
class SupabaseParticipantRepository(ParticipantRepository):
    """Supabase implementation for session participants."""

    client: Client

    def upsert_participant(
        self,
        session_id: UUID,
        participant_id: str,
        display_name: str,
        seen_at: datetime,
    ) -> None:
        """Upsert on (session_id, participant_id); joined_at keeps its default."""
        execute(
            self.client.table(_TABLE).upsert(
                {
                    "session_id": str(session_id),
                    "participant_id": participant_id,
                    "display_name": display_name,
                    "last_seen_at": seen_at.isoformat(),
                },
                on_conflict="session_id,participant_id",
            ),
            "upsert participant",
        )

    def list_participants(self, session_id: UUID) -> list[Participant]:
        """Return participants in join order."""
        response = execute(
            self.client.table(_TABLE)
            .select("session_id, participant_id, display_name, joined_at, last_seen_at")
            .eq("session_id", str(session_id))
            .order("joined_at"),
            "list participants",
        )
        return [_parse_participant(row) for row in response.data or []]


def _parse_participant(row: dict[str, object]) -> Participant:
    joined_at = parse_timestamp(row.get("joined_at")) or datetime.now(tz=UTC)
    return Participant(
        session_id=UUID(str(row["session_id"])),
        participant_id=str(row["participant_id"]),
        display_name=str(row.get("display_name", "")),
        joined_at=joined_at,
        last_seen_at=parse_timestamp(row.get("last_seen_at")) or joined_at,
    )
