"""Shared helpers for Supabase repositories."""

from datetime import datetime
from typing import Any, Protocol

import httpx
from postgrest.exceptions import APIError

from inventory_counting.domain.errors import (
    InventoryError,
    SessionNotFoundError,
    SessionStateConflictError,
    StorageError,
)

# SQLSTATEs raised by the inventory stored procedures.
NO_DATA_FOUND = "P0002"
OBJECT_NOT_IN_PREREQUISITE_STATE = "55000"


class Executable(Protocol):
    """Any postgrest request builder."""

    def execute(self) -> Any:
        """Send the request."""


def execute(query: Executable, action: str) -> Any:
    """Run a query, translating client failures into inventory errors."""
    try:
        return query.execute()
    except APIError as exc:
        raise translate_api_error(exc, action) from exc
    except httpx.HTTPError as exc:
        raise StorageError(f"Failed to {action}: {exc}") from exc


def translate_api_error(exc: APIError, action: str) -> InventoryError:
    """Map a PostgREST error onto the inventory error taxonomy."""
    message = exc.message or f"Failed to {action}"
    if exc.code == NO_DATA_FOUND:
        return SessionNotFoundError(message)
    if exc.code == OBJECT_NOT_IN_PREREQUISITE_STATE:
        return SessionStateConflictError(message)
    return StorageError(f"Failed to {action}: {message}")


def first_row(data: object, action: str) -> dict[str, Any]:
    """Return the single row of a write response or fail loudly."""
    if isinstance(data, list):
        if not data:
            raise StorageError(f"Failed to {action}: no row returned")
        return data[0]
    if isinstance(data, dict):
        return data
    raise StorageError(f"Failed to {action}: no row returned")


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp column."""
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
