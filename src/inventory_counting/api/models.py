"""Pydantic request models for the inventory API."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field


class CreateSessionRequest(BaseModel):
    """Payload to start a counting session."""

    session_name: str
    host_id: str
    host_name: str | None = None
    created_by: str | None = None
    baseline_session_id: UUID | None = None


class CountEventPayload(BaseModel):
    """One client-generated count event."""

    event_id: str
    item_key: str = Field(
        default="", validation_alias=AliasChoices("item_key", "system_id")
    )
    delta: int = Field(validation_alias=AliasChoices("delta", "delta_qty"))
    timestamp: datetime | None = None
    actor_id: str | None = None


class SubmitEventsRequest(BaseModel):
    """A batch of count events from one device."""

    actor_id: str
    actor_name: str | None = None
    events: list[CountEventPayload] = Field(default_factory=list)


class OverrideRequest(BaseModel):
    """Manual override of one item's final quantity."""

    quantity: int
    overridden_by: str | None = None
    reason: str | None = None


class FinalizeRequest(BaseModel):
    """Finalize options."""

    finalized_by: str | None = None
    lock: bool = True
