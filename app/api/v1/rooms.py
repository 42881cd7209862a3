"""Room endpoints: listing, legal actions, and manual status changes."""

from uuid import UUID

from fastapi import APIRouter, Query
from sqlalchemy import select

from app.api.deps import CurrentUser, DbSession, StaffOrAdminUser
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.room_state import RoomStatus, TransitionKind, legal_manual_targets, parse_room_status
from app.models.room import Room
from app.schemas.room import (
    RoomDetailResponse,
    RoomResponse,
    RoomStatusUpdate,
    RoomTransitionsResponse,
)
from app.services.room_transition_service import room_transition_service

router = APIRouter()


def _sorted_targets(status: RoomStatus) -> list[RoomStatus]:
    return sorted(legal_manual_targets(status), key=lambda s: s.value)


async def _get_room(db, room_id: UUID) -> Room:
    room = await db.get(Room, room_id)
    if not room:
        raise NotFoundError("Room", str(room_id))
    return room


@router.get("/", response_model=list[RoomResponse])
async def list_rooms(
    current_user: CurrentUser,
    db: DbSession,
    status: str | None = Query(None, description="Filter by room status"),
) -> list[Room]:
    """List rooms, optionally by status."""
    query = select(Room).order_by(Room.number)
    if status is not None:
        room_status = parse_room_status(status)
        if room_status is None:
            raise ValidationError(f"Invalid room status: {status!r}")
        query = query.where(Room.status == room_status.value)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/{room_id}", response_model=RoomDetailResponse)
async def get_room(
    room_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> RoomDetailResponse:
    room = await _get_room(db, room_id)
    return RoomDetailResponse(
        **RoomResponse.model_validate(room).model_dump(),
        legal_manual_targets=_sorted_targets(RoomStatus(room.status)),
    )


@router.get("/{room_id}/transitions", response_model=RoomTransitionsResponse)
async def get_room_transitions(
    room_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> RoomTransitionsResponse:
    """Statuses staff may move this room to right now."""
    room = await _get_room(db, room_id)
    current = RoomStatus(room.status)
    return RoomTransitionsResponse(
        room_id=room.id,
        current_status=current,
        legal_manual_targets=_sorted_targets(current),
    )


@router.post("/{room_id}/status", response_model=RoomResponse)
async def change_room_status(
    room_id: UUID,
    update: RoomStatusUpdate,
    current_user: StaffOrAdminUser,
    db: DbSession,
) -> Room:
    """Request a manual status change.

    The transition kind is always manual here; OCCUPIED is reachable only
    through the check-in operation.
    """
    result = await room_transition_service.request_transition(
        db,
        room_id,
        update.status,
        current_user.id,
        TransitionKind.MANUAL,
    )
    return result.unwrap()
