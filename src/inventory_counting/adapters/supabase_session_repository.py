"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from inventory_counting.adapters.supabase_support import (
    execute,
    first_row,
    parse_timestamp,
)
from inventory_counting.domain.errors import SessionStateConflictError
from inventory_counting.domain.sessions import InventorySession, SessionStatus
from inventory_counting.services.sessions import SessionRepository

_TABLE = "inventory_sessions"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for counting sessions."""

    client: Client

    def create_session(
        self,
        session_name: str,
        host_id: str,
        created_by: str,
        baseline_session_id: UUID | None,
    ) -> InventorySession:
        """Create a session row and return it."""
        response = execute(
            self.client.table(_TABLE).insert(
                {
                    "session_name": session_name,
                    "host_id": host_id,
                    "created_by": created_by,
                    "baseline_session_id": (
                        str(baseline_session_id) if baseline_session_id else None
                    ),
                    "status": SessionStatus.ACTIVE.value,
                }
            ),
            "create session",
        )
        return _parse_session(first_row(response.data, "create session"))

    def get_session(self, session_id: UUID) -> InventorySession | None:
        """Return a session by id, if present."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(session_id))
            .limit(1),
            "load session",
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def list_sessions(self, limit: int) -> list[InventorySession]:
        """Return the most recently updated sessions."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .order("updated_at", desc=True)
            .limit(limit),
            "list sessions",
        )
        return [_parse_session(row) for row in response.data or []]

    def close_session(self, session_id: UUID) -> InventorySession:
        """Close event acceptance through the locking stored procedure."""
        response = execute(
            self.client.rpc(
                "inventory_close_session", {"p_session_id": str(session_id)}
            ),
            "close session",
        )
        return _parse_session(first_row(response.data, "close session"))

    def update_status(
        self,
        session_id: UUID,
        status: SessionStatus,
        locked_at: datetime | None,
    ) -> InventorySession:
        """Persist the session status unless the session is already locked."""
        response = execute(
            self.client.table(_TABLE)
            .update(
                {
                    "status": status.value,
                    "locked_at": locked_at.isoformat() if locked_at else None,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(session_id))
            .neq("status", SessionStatus.LOCKED.value),
            "update session status",
        )
        if not response.data:
            raise SessionStateConflictError(
                f"Session {session_id} is locked or missing; status not changed"
            )
        return _parse_session(first_row(response.data, "update session status"))

    def touch_last_sync(self, session_id: UUID, synced_at: datetime) -> None:
        """Advance last_sync_at and updated_at."""
        execute(
            self.client.table(_TABLE)
            .update(
                {
                    "last_sync_at": synced_at.isoformat(),
                    "updated_at": synced_at.isoformat(),
                }
            )
            .eq("id", str(session_id)),
            "record session sync",
        )

    def get_latest_locked_session(
        self, exclude_session_id: UUID
    ) -> InventorySession | None:
        """Return the most recently locked session other than the given one."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("status", SessionStatus.LOCKED.value)
            .neq("id", str(exclude_session_id))
            .order("locked_at", desc=True)
            .limit(1),
            "load baseline session",
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])


def _parse_session(row: dict[str, object]) -> InventorySession:
    """Parse a session row into a domain model."""
    baseline = row.get("baseline_session_id")
    return InventorySession(
        id=UUID(str(row["id"])),
        session_name=str(row.get("session_name", "")),
        host_id=str(row.get("host_id", "")),
        created_by=str(row.get("created_by", "")),
        status=SessionStatus(row["status"]),
        baseline_session_id=UUID(str(baseline)) if baseline else None,
        created_at=parse_timestamp(row.get("created_at")) or datetime.now(tz=UTC),
        updated_at=parse_timestamp(row.get("updated_at")) or datetime.now(tz=UTC),
        last_sync_at=parse_timestamp(row.get("last_sync_at")),
        locked_at=parse_timestamp(row.get("locked_at")),
    )
