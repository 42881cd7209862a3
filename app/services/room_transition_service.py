"""Room status transition authority.

Every change to ``Room.status`` goes through ``request_transition``. Each call
writes exactly one audit record, accepted or rejected, in the same commit as
the status change (if any).
"""

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    TRANSITION_ERRORS,
    InvalidRoomStatus,
    RoomNotFound,
    StorageUnavailable,
    TransitionError,
)
from app.core.locks import RoomLockRegistry, room_locks
from app.domain.booking_state import BookingStatus
from app.domain.room_state import (
    RoomStatus,
    TransitionContext,
    TransitionKind,
    evaluate_transition,
    parse_room_status,
    parse_transition_kind,
)
from app.models.audit import RoomStatusAudit
from app.models.booking import Booking
from app.models.room import Room
from app.services.audit_service import AuditService, audit_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one transition request: the updated room or the refusal."""

    room: Room | None = None
    error: TransitionError | None = None
    audit: RoomStatusAudit | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Room:
        """Return the room, or raise the refusal."""
        if self.error is not None:
            raise self.error
        return self.room


class RoomTransitionService:
    """The single gate for room status changes."""

    def __init__(
        self,
        locks: RoomLockRegistry = room_locks,
        audit: AuditService = audit_service,
    ) -> None:
        self._locks = locks
        self._audit = audit

    async def request_transition(
        self,
        db: AsyncSession,
        room_id: UUID,
        requested_status: str | RoomStatus,
        actor_id: UUID,
        transition_kind: str | TransitionKind,
        *,
        booking_id: UUID | None = None,
        commit: bool = True,
        timeout: float | None = None,
    ) -> TransitionResult:
        """Validate and apply a room status change.

        Args:
            db: Database session; the call commits it unless ``commit`` is False
            room_id: Room to change
            requested_status: Target status (raw values outside the domain are refused)
            actor_id: User requesting the change
            transition_kind: "manual" for staff, "automatic" for the booking lifecycle only
            booking_id: Booking driving an automatic change, recorded in the audit
            commit: False when the caller owns the transaction (it must commit
                while still holding the room lock)
            timeout: Seconds allowed for the lock wait and reads, default from settings;
                the commit itself is not cut short

        Returns:
            TransitionResult carrying the room or a TransitionError, and the audit row
        """
        timeout = settings.storage_timeout_seconds if timeout is None else timeout
        try:
            async with asyncio.timeout(timeout) as deadline:
                async with self._locks.hold(room_id):
                    return await self._apply(
                        db,
                        room_id,
                        requested_status,
                        actor_id,
                        transition_kind,
                        booking_id=booking_id,
                        commit=commit,
                        deadline=deadline,
                    )
        except (TimeoutError, SQLAlchemyError) as e:
            logger.exception(
                f"Room transition storage failure: room_id={room_id} "
                f"requested={requested_status} actor_id={actor_id}"
            )
            await db.rollback()
            return TransitionResult(
                error=StorageUnavailable(f"Room status storage unavailable: {type(e).__name__}")
            )

    async def _apply(
        self,
        db: AsyncSession,
        room_id: UUID,
        requested_status: str | RoomStatus,
        actor_id: UUID,
        transition_kind: str | TransitionKind,
        booking_id: UUID | None,
        commit: bool,
        deadline: asyncio.Timeout,
    ) -> TransitionResult:
        room = await self._lock_room(db, room_id)
        previous_status = room.status if room is not None else None
        target = parse_room_status(requested_status)
        kind = parse_transition_kind(transition_kind)

        error: TransitionError | None = None
        if room is None:
            error = RoomNotFound(f"Room with ID '{room_id}' not found")
        elif target is None:
            error = InvalidRoomStatus(f"Invalid room status: {requested_status!r}")
        elif kind is None:
            error = InvalidRoomStatus(f"Invalid transition kind: {transition_kind!r}")
        else:
            ctx = TransitionContext(
                current=RoomStatus(room.status),
                requested=target,
                kind=kind,
                has_active_booking=(
                    target is RoomStatus.AVAILABLE
                    and await self.has_active_booking(db, room.id)
                ),
            )
            violation = evaluate_transition(ctx)
            if violation is not None:
                error = TRANSITION_ERRORS[violation.kind](violation.reason)
            else:
                room.status = target.value

        audit = self._audit.record_transition(
            db,
            actor_id=actor_id,
            room_id=room_id,
            previous_status=previous_status,
            requested_status=requested_status,
            transition_kind=transition_kind,
            error=error,
            booking_id=booking_id,
        )
        # The deadline bounds the lock wait and the reads only; once the commit
        # starts it runs to completion, so Unavailable always means nothing persisted
        deadline.reschedule(None)
        if commit:
            await db.commit()
        else:
            await db.flush()

        if error is None:
            logger.info(
                f"Room {room_id} {previous_status} → {room.status} "
                f"({kind.value}) by {actor_id}"
            )
            return TransitionResult(room=room, audit=audit)

        logger.warning(
            f"Room transition rejected: room_id={room_id} {previous_status} → "
            f"{target.value if target else requested_status} by {actor_id}: "
            f"{error.kind.value}: {error.reason}"
        )
        return TransitionResult(error=error, audit=audit)

    async def _lock_room(self, db: AsyncSession, room_id: UUID) -> Room | None:
        result = await db.execute(
            select(Room)
            .where(Room.id == room_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def has_active_booking(self, db: AsyncSession, room_id: UUID) -> bool:
        """True if some booking for the room is CHECKED_IN."""
        result = await db.execute(
            select(Booking.id)
            .where(
                Booking.room_id == room_id,
                Booking.status == BookingStatus.CHECKED_IN.value,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None


room_transition_service = RoomTransitionService()
