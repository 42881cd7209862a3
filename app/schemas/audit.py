"""Audit trail Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class RoomStatusAuditResponse(BaseModel):
    """One room status transition attempt."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: UUID | None
    room_id: UUID | None
    booking_id: UUID | None
    previous_status: str | None
    requested_status: str
    new_status: str | None
    transition_kind: str
    outcome: str
    error_kind: str | None
    reason: str | None
    created_at: datetime


class RoomStatusAuditListResponse(BaseModel):
    items: list[RoomStatusAuditResponse]
    total: int
