"""Booking-related Pydantic schemas."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.domain.booking_state import BookingStatus
from app.schemas.room import RoomResponse


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    room_id: UUID
    check_in_date: date
    check_out_date: date
    total_cost: Decimal
    status: BookingStatus


class CheckInRequest(BaseModel):
    booking_id: UUID


class CheckOutRequest(BaseModel):
    room_id: UUID


class CheckInResponse(BaseModel):
    booking: BookingResponse
    room: RoomResponse


class CheckOutResponse(BaseModel):
    booking: BookingResponse | None
    room: RoomResponse
    late_penalty: Decimal
    room_released: bool = True
