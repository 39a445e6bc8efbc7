"""Supabase-backed manual override repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from inventory_counting.adapters.supabase_support import (
    execute,
    first_row,
    parse_timestamp,
)
from inventory_counting.domain.identifiers import normalize_identifier
from inventory_counting.domain.reconciliation import ManualOverride
from inventory_counting.services.finalization import OverrideRepository

_TABLE = "inventory_manual_overrides"


@dataclass
class SupabaseOverrideRepository(OverrideRepository):
    """Supabase implementation for manual overrides."""

    client: Client

    def upsert_override(self, override: ManualOverride) -> ManualOverride:
        """Upsert on (session_id, item_key)."""
        response = execute(
            self.client.table(_TABLE).upsert(
                {
                    "session_id": str(override.session_id),
                    "item_key": override.item_key,
                    "override_qty": override.override_qty,
                    "overridden_by": override.overridden_by,
                    "reason": override.reason,
                },
                on_conflict="session_id,item_key",
            ),
            "save manual override",
        )
        return _parse_override(first_row(response.data, "save manual override"))

    def delete_override(self, session_id: UUID, item_key: str) -> None:
        """Delete the override row, if present."""
        execute(
            self.client.table(_TABLE)
            .delete()
            .eq("session_id", str(session_id))
            .eq("item_key", item_key),
            "delete manual override",
        )

    def list_overrides(self, session_id: UUID) -> list[ManualOverride]:
        """Return all overrides of a session."""
        response = execute(
            self.client.table(_TABLE)
            .select("*")
            .eq("session_id", str(session_id))
            .order("item_key"),
            "list manual overrides",
        )
        return [_parse_override(row) for row in response.data or []]


def _parse_override(row: dict[str, object]) -> ManualOverride:
    reason = row.get("reason")
    return ManualOverride(
        session_id=UUID(str(row["session_id"])),
        item_key=normalize_identifier(row.get("item_key")),
        override_qty=int(row.get("override_qty", 0)),
        overridden_by=str(row.get("overridden_by", "")),
        reason=str(reason) if reason else None,
        created_at=parse_timestamp(row.get("created_at")),
    )
