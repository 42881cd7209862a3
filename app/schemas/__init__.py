"""Pydantic schemas for API validation."""

from app.schemas.audit import RoomStatusAuditListResponse, RoomStatusAuditResponse
from app.schemas.booking import (
    BookingResponse,
    CheckInRequest,
    CheckInResponse,
    CheckOutRequest,
    CheckOutResponse,
)
from app.schemas.room import (
    RoomDetailResponse,
    RoomResponse,
    RoomStatusUpdate,
    RoomTransitionsResponse,
)

__all__ = [
    # Room
    "RoomResponse",
    "RoomDetailResponse",
    "RoomStatusUpdate",
    "RoomTransitionsResponse",
    # Booking
    "BookingResponse",
    "CheckInRequest",
    "CheckInResponse",
    "CheckOutRequest",
    "CheckOutResponse",
    # Audit
    "RoomStatusAuditResponse",
    "RoomStatusAuditListResponse",
]
