"""Staff operations: check-in and check-out."""

from fastapi import APIRouter

from app.api.deps import DbSession, StaffUser
from app.schemas.booking import (
    BookingResponse,
    CheckInRequest,
    CheckInResponse,
    CheckOutRequest,
    CheckOutResponse,
)
from app.schemas.room import RoomResponse
from app.services.booking_lifecycle_service import booking_lifecycle_service

router = APIRouter()


@router.post("/checkin", response_model=CheckInResponse)
async def check_in(
    request: CheckInRequest,
    current_user: StaffUser,
    db: DbSession,
) -> CheckInResponse:
    """Check a guest in; the room becomes OCCUPIED."""
    result = await booking_lifecycle_service.check_in(db, current_user.id, request.booking_id)
    return CheckInResponse(
        booking=BookingResponse.model_validate(result.booking),
        room=RoomResponse.model_validate(result.room),
    )


@router.post("/checkout", response_model=CheckOutResponse)
async def check_out(
    request: CheckOutRequest,
    current_user: StaffUser,
    db: DbSession,
) -> CheckOutResponse:
    """Check the current guest out; the room becomes AVAILABLE unless staff hold it in MAINTENANCE."""
    result = await booking_lifecycle_service.check_out(db, current_user.id, request.room_id)
    return CheckOutResponse(
        booking=BookingResponse.model_validate(result.booking) if result.booking else None,
        room=RoomResponse.model_validate(result.room),
        late_penalty=result.late_penalty,
        room_released=result.room_released,
    )
