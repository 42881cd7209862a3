"""Room status audit trail endpoints (admin only)."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query

from app.api.deps import AdminUser, DbSession
from app.schemas.audit import RoomStatusAuditListResponse, RoomStatusAuditResponse
from app.services.audit_service import audit_service

router = APIRouter()


@router.get("/rooms", response_model=RoomStatusAuditListResponse)
async def list_room_audit(
    current_user: AdminUser,
    db: DbSession,
    outcome: Literal["accepted", "rejected"] | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> RoomStatusAuditListResponse:
    """Most recent transition attempts across all rooms."""
    records = await audit_service.list_recent(db, outcome=outcome, limit=limit, offset=offset)
    total = await audit_service.count(db, outcome=outcome)
    return RoomStatusAuditListResponse(
        items=[RoomStatusAuditResponse.model_validate(r) for r in records],
        total=total,
    )


@router.get("/rooms/{room_id}", response_model=RoomStatusAuditListResponse)
async def list_audit_for_room(
    room_id: UUID,
    current_user: AdminUser,
    db: DbSession,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> RoomStatusAuditListResponse:
    records = await audit_service.list_for_room(db, room_id, limit=limit, offset=offset)
    total = await audit_service.count(db, room_id=room_id)
    return RoomStatusAuditListResponse(
        items=[RoomStatusAuditResponse.model_validate(r) for r in records],
        total=total,
    )
