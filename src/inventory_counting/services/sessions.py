"""Session lifecycle management."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from inventory_counting.domain.errors import (
    InventoryValidationError,
    SessionNotFoundError,
    SessionStateConflictError,
)
from inventory_counting.domain.sessions import (
    InventorySession,
    SessionStatus,
    ensure_transition,
)
from inventory_counting.services.participants import ParticipantRegistry

logger = logging.getLogger(__name__)

OPEN_ACCESS_ACTOR = "open_access"
DEFAULT_HOST_NAME = "Host"


class SessionRepository(Protocol):
    """Persistence interface for counting sessions."""

    def create_session(
        self,
        session_name: str,
        host_id: str,
        created_by: str,
        baseline_session_id: UUID | None,
    ) -> InventorySession:
        """Create an active session and return it."""

    def get_session(self, session_id: UUID) -> InventorySession | None:
        """Return a session by id, if present."""

    def list_sessions(self, limit: int) -> list[InventorySession]:
        """Return the most recently updated sessions."""

    def close_session(self, session_id: UUID) -> InventorySession:
        """Atomically move a non-locked session to finalizing.

        Must serialize with ``append_events`` on the event repository so no
        append commits against the session after this returns.
        """

    def update_status(
        self,
        session_id: UUID,
        status: SessionStatus,
        locked_at: datetime | None,
    ) -> InventorySession:
        """Persist a status change and return the updated session.

        Must leave a locked session untouched and raise
        ``SessionStateConflictError``, even if it was read as unlocked.
        """

    def touch_last_sync(self, session_id: UUID, synced_at: datetime) -> None:
        """Advance the advisory last-sync timestamp."""

    def get_latest_locked_session(
        self, exclude_session_id: UUID
    ) -> InventorySession | None:
        """Return the most recently locked session other than the given one."""


@dataclass
class SessionService:
    """Owns session creation and status transitions."""

    repository: SessionRepository
    participant_registry: ParticipantRegistry

    def create_session(  # noqa: PLR0913
        self,
        session_name: str,
        host_id: str,
        created_by: str | None = None,
        baseline_session_id: UUID | None = None,
        host_name: str | None = None,
    ) -> InventorySession:
        """Start a counting effort and register its host as a participant."""
        name = session_name.strip()
        host = host_id.strip()
        field_errors = {}
        if not name:
            field_errors["session_name"] = "required"
        if not host:
            field_errors["host_id"] = "required"
        if field_errors:
            raise InventoryValidationError(
                "session_name and host_id are required", field_errors
            )
        if baseline_session_id is not None:
            self.get_session(baseline_session_id)

        session = self.repository.create_session(
            session_name=name,
            host_id=host,
            created_by=(created_by or "").strip() or OPEN_ACCESS_ACTOR,
            baseline_session_id=baseline_session_id,
        )
        self.participant_registry.upsert(
            session.id, host, (host_name or "").strip() or DEFAULT_HOST_NAME
        )
        logger.info("Created inventory session %s (%s)", session.id, name)
        return session

    def get_session(self, session_id: UUID) -> InventorySession:
        """Return a session or raise if it does not exist."""
        session = self.repository.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def list_sessions(self, limit: int = 20) -> list[InventorySession]:
        """Return recent sessions."""
        return self.repository.list_sessions(limit)

    def require_active(self, session_id: UUID) -> InventorySession:
        """Return the session if it still accepts events."""
        session = self.get_session(session_id)
        if not session.accepts_events:
            raise SessionStateConflictError(
                f"Session {session_id} is {session.status.value}; "
                "events are no longer accepted"
            )
        return session

    def record_sync(self, session_id: UUID) -> datetime:
        """Mark a successful sync and return its timestamp."""
        synced_at = datetime.now(tz=UTC)
        self.repository.touch_last_sync(session_id, synced_at)
        return synced_at

    def begin_finalize(self, session_id: UUID) -> InventorySession:
        """Close the session to new events ahead of reconciliation."""
        session = self.get_session(session_id)
        ensure_transition(session.status, SessionStatus.FINALIZING)
        return self.repository.close_session(session_id)

    def complete_finalize(self, session_id: UUID, lock: bool) -> InventorySession:
        """Record the post-finalize status, locking when requested."""
        session = self.get_session(session_id)
        target = SessionStatus.LOCKED if lock else SessionStatus.FINALIZING
        ensure_transition(session.status, target)
        locked_at = datetime.now(tz=UTC) if lock else None
        return self.repository.update_status(session_id, target, locked_at)

    def find_baseline(self, session_id: UUID) -> InventorySession | None:
        """Return the comparison baseline for a finalize call."""
        return self.repository.get_latest_locked_session(session_id)
