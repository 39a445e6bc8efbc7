"""Inventory counting session endpoints."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Request, status

from inventory_counting.api.models import (  # noqa: TC001
    CreateSessionRequest,
    FinalizeRequest,
    OverrideRequest,
    SubmitEventsRequest,
)
from inventory_counting.services.count_events import EventSubmission

if TYPE_CHECKING:
    from inventory_counting.containers import AppContainer
    from inventory_counting.domain.counting import Contribution, ItemTotal
    from inventory_counting.domain.reconciliation import ManualOverride, Mismatch
    from inventory_counting.domain.sessions import InventorySession, Participant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory/sessions", tags=["inventory"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.post("", status_code=status.HTTP_201_CREATED)
def create_session(body: CreateSessionRequest, request: Request) -> dict[str, object]:
    """Start a counting session."""
    session = _container(request).session_service.create_session(
        session_name=body.session_name,
        host_id=body.host_id,
        created_by=body.created_by,
        baseline_session_id=body.baseline_session_id,
        host_name=body.host_name,
    )
    return {"ok": True, "session": serialize_session(session)}


@router.get("/{session_id}/state")
def get_session_state(session_id: UUID, request: Request) -> dict[str, object]:
    """Return totals, contributions and participants for a session."""
    state = _container(request).totals_aggregator.compute_state(session_id)
    return {
        "ok": True,
        "state": {
            "session": serialize_session(state.session),
            "participants": [_participant(row) for row in state.participants],
            "totals": [_total(row) for row in state.totals],
            "contributions": [_contribution(row) for row in state.contributions],
            "pending_event_count": state.pending_event_count,
            "last_sync_at": _isoformat(state.last_sync_at),
        },
    }


@router.post("/{session_id}/events")
def submit_events(
    session_id: UUID, body: SubmitEventsRequest, request: Request
) -> dict[str, object]:
    """Commit a batch of count events. Safe to retry verbatim."""
    result = _container(request).count_event_log.submit_events(
        session_id=session_id,
        actor_id=body.actor_id,
        actor_name=body.actor_name,
        events=[
            EventSubmission(
                event_id=event.event_id,
                item_key=event.item_key,
                delta=event.delta,
                timestamp=event.timestamp,
                actor_id=event.actor_id,
            )
            for event in body.events
        ],
    )
    return {
        "ok": True,
        "accepted_count": result.accepted_count,
        "totals": [_total(row) for row in result.totals],
        "participants": [_participant(row) for row in result.participants],
        "last_sync_at": _isoformat(result.last_sync_at),
    }


@router.get("/{session_id}/overrides")
def list_overrides(session_id: UUID, request: Request) -> dict[str, object]:
    """Return manual overrides of a session."""
    overrides = _container(request).finalization_service.list_overrides(session_id)
    return {"ok": True, "overrides": [_override(row) for row in overrides]}


@router.put("/{session_id}/overrides/{item_key}")
def set_override(
    session_id: UUID, item_key: str, body: OverrideRequest, request: Request
) -> dict[str, object]:
    """Set the final quantity for one item, superseding counted events."""
    override = _container(request).finalization_service.set_override(
        session_id=session_id,
        item_key=item_key,
        quantity=body.quantity,
        overridden_by=body.overridden_by,
        reason=body.reason,
    )
    return {"ok": True, "override": _override(override)}


@router.delete("/{session_id}/overrides/{item_key}")
def clear_override(
    session_id: UUID, item_key: str, request: Request
) -> dict[str, object]:
    """Remove a manual override."""
    _container(request).finalization_service.clear_override(session_id, item_key)
    return {"ok": True}


@router.post("/{session_id}/finalize")
def finalize_session(
    session_id: UUID, request: Request, body: FinalizeRequest | None = None
) -> dict[str, object]:
    """Freeze totals and report differences against the last locked count."""
    options = body or FinalizeRequest()
    result = _container(request).finalization_service.finalize(
        session_id, finalized_by=options.finalized_by, lock=options.lock
    )
    return {
        "ok": True,
        "totals": [_total(row) for row in result.totals],
        "mismatches": [_mismatch(row) for row in result.mismatches],
    }


@router.get("/{session_id}/final")
def get_final_items(session_id: UUID, request: Request) -> dict[str, object]:
    """Return the final snapshot of a session."""
    items = _container(request).finalization_service.get_final_items(session_id)
    return {"ok": True, "items": [_total(row) for row in items]}


def serialize_session(session: InventorySession) -> dict[str, object]:
    """Serialize a session for API responses."""
    return {
        "id": str(session.id),
        "session_name": session.session_name,
        "host_id": session.host_id,
        "created_by": session.created_by,
        "status": session.status.value,
        "baseline_session_id": (
            str(session.baseline_session_id) if session.baseline_session_id else None
        ),
        "created_at": _isoformat(session.created_at),
        "updated_at": _isoformat(session.updated_at),
        "last_sync_at": _isoformat(session.last_sync_at),
        "locked_at": _isoformat(session.locked_at),
    }


def _participant(participant: Participant) -> dict[str, object]:
    return {
        "participant_id": participant.participant_id,
        "display_name": participant.display_name,
        "joined_at": _isoformat(participant.joined_at),
        "last_seen_at": _isoformat(participant.last_seen_at),
    }


def _total(total: ItemTotal) -> dict[str, object]:
    return {"item_key": total.item_key, "qty": total.qty}


def _contribution(contribution: Contribution) -> dict[str, object]:
    return {
        "actor_id": contribution.actor_id,
        "item_key": contribution.item_key,
        "qty": contribution.qty,
    }


def _override(override: ManualOverride) -> dict[str, object]:
    return {
        "item_key": override.item_key,
        "override_qty": override.override_qty,
        "overridden_by": override.overridden_by,
        "reason": override.reason,
    }


def _mismatch(mismatch: Mismatch) -> dict[str, object]:
    return {
        "item_key": mismatch.item_key,
        "qty": mismatch.qty,
        "previous_qty": mismatch.previous_qty,
        "delta": mismatch.delta,
    }


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
