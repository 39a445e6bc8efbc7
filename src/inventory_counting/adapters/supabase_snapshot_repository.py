"""Supabase-backed final snapshot repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from inventory_counting.adapters.supabase_support import execute
from inventory_counting.domain.counting import ItemTotal
from inventory_counting.domain.identifiers import normalize_identifier
from inventory_counting.services.finalization import SnapshotRepository

_TABLE = "inventory_session_final"
_PAGE_SIZE = 1000


@dataclass
class SupabaseSnapshotRepository(SnapshotRepository):
    """Supabase implementation for final snapshot rows."""

    client: Client

    def replace_final_items(
        self,
        session_id: UUID,
        items: list[ItemTotal],
        finalized_by: str,
        finalized_at: datetime,
    ) -> None:
        """Drop rows for items no longer present, then upsert the rest."""
        stale = (
            self.client.table(_TABLE).delete().eq("session_id", str(session_id))
        )
        if items:
            stale = stale.not_.in_("item_key", [item.item_key for item in items])
        execute(stale, "prune final snapshot")
        if not items:
            return
        execute(
            self.client.table(_TABLE).upsert(
                [
                    {
                        "session_id": str(session_id),
                        "item_key": item.item_key,
                        "final_qty": item.qty,
                        "finalized_by": finalized_by,
                        "finalized_at": finalized_at.isoformat(),
                    }
                    for item in items
                ],
                on_conflict="session_id,item_key",
            ),
            "write final snapshot",
        )

    def list_final_items(self, session_id: UUID) -> list[ItemTotal]:
        """Return snapshot rows ordered by item key, paging past the row cap."""
        items: list[ItemTotal] = []
        start = 0
        while True:
            response = execute(
                self.client.table(_TABLE)
                .select("item_key, final_qty")
                .eq("session_id", str(session_id))
                .order("item_key")
                .range(start, start + _PAGE_SIZE - 1),
                "load final snapshot",
            )
            rows = response.data or []
            items.extend(
                ItemTotal(
                    item_key=normalize_identifier(row.get("item_key")),
                    qty=int(row.get("final_qty", 0)),
                )
                for row in rows
            )
            if len(rows) < _PAGE_SIZE:
                return items
            start += _PAGE_SIZE
