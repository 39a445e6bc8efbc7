"""Supabase-backed count event log."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from inventory_counting.adapters.supabase_support import execute
from inventory_counting.domain.counting import CountEvent, RecordedDelta
from inventory_counting.domain.errors import StorageError
from inventory_counting.domain.identifiers import normalize_identifier
from inventory_counting.services.count_events import CountEventRepository


@dataclass
class SupabaseCountEventRepository(CountEventRepository):
    """Event log stored in ``inventory_session_events``.

    Writes and reads go through stored procedures: the append checks the
    session status under a row lock in the same transaction as the insert,
    and the read returns the whole log as one JSON value so it is a single
    snapshot and is not cut off by the API row limit.
    """

    client: Client

    def append_events(
        self, session_id: UUID, created_by: str, events: list[CountEvent]
    ) -> None:
        """Insert events, ignoring ids already present for the session."""
        execute(
            self.client.rpc(
                "inventory_append_events",
                {
                    "p_session_id": str(session_id),
                    "p_created_by": created_by,
                    "p_events": [
                        {
                            "event_id": event.event_id,
                            "actor_id": event.actor_id,
                            "item_key": event.item_key,
                            "delta_qty": event.delta_qty,
                            "event_ts": event.event_ts.isoformat(),
                        }
                        for event in events
                    ],
                },
            ),
            "append count events",
        )

    def list_deltas(self, session_id: UUID) -> list[RecordedDelta]:
        """Return every event of the session."""
        response = execute(
            self.client.rpc(
                "inventory_session_events_snapshot",
                {"p_session_id": str(session_id)},
            ),
            "load count events",
        )
        rows = response.data or []
        if not isinstance(rows, list):
            raise StorageError("Failed to load count events: unexpected payload")
        return [
            RecordedDelta(
                actor_id=str(row.get("actor_id", "")),
                item_key=normalize_identifier(row.get("item_key")),
                delta_qty=int(row.get("delta_qty", 0)),
            )
            for row in rows
        ]
