"""Domain models for counting sessions and their lifecycle."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from inventory_counting.domain.errors import SessionStateConflictError


class SessionStatus(StrEnum):
    """Lifecycle states of a counting session."""

    ACTIVE = "active"
    FINALIZING = "finalizing"
    LOCKED = "locked"


_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.ACTIVE: frozenset({SessionStatus.FINALIZING, SessionStatus.LOCKED}),
    SessionStatus.FINALIZING: frozenset(
        {SessionStatus.FINALIZING, SessionStatus.LOCKED}
    ),
    SessionStatus.LOCKED: frozenset(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    """Return whether the lifecycle allows moving from current to target."""
    return target in _TRANSITIONS[current]


def ensure_transition(current: SessionStatus, target: SessionStatus) -> None:
    """Raise a conflict if the lifecycle forbids the transition."""
    if not can_transition(current, target):
        raise SessionStateConflictError(
            f"Session cannot move from {current.value} to {target.value}"
        )


@dataclass(frozen=True)
class InventorySession:
    """Represents a persisted counting session."""

    id: UUID
    session_name: str
    host_id: str
    created_by: str
    status: SessionStatus
    baseline_session_id: UUID | None
    created_at: datetime
    updated_at: datetime
    last_sync_at: datetime | None = None
    locked_at: datetime | None = None

    @property
    def accepts_events(self) -> bool:
        """Events are only accepted while the session is active."""
        return self.status is SessionStatus.ACTIVE


@dataclass(frozen=True)
class Participant:
    """One actor's membership in a session."""

    session_id: UUID
    participant_id: str
    display_name: str
    joined_at: datetime
    last_seen_at: datetime
