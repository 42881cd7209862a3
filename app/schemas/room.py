"""Room-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.domain.room_state import RoomStatus


class RoomResponse(BaseModel):
    """Schema for room response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    number: str
    type: str
    price_per_night: Decimal
    status: RoomStatus
    updated_at: datetime | None = None


class RoomDetailResponse(RoomResponse):
    """Room with the statuses staff may move it to."""

    legal_manual_targets: list[RoomStatus]


class RoomStatusUpdate(BaseModel):
    """Manual status change request.

    ``status`` is a plain string so that out-of-domain values reach the
    transition authority and are audited.
    """

    status: str = Field(..., min_length=1, max_length=50)


class RoomTransitionsResponse(BaseModel):
    room_id: UUID
    current_status: RoomStatus
    legal_manual_targets: list[RoomStatus]
