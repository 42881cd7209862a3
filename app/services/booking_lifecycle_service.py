"""Check-in and check-out operations.

The only caller allowed to request ``automatic`` room transitions.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    InvalidBookingStatus,
    NotFoundError,
    TransitionError,
    TransitionErrorKind,
)
from app.core.locks import RoomLockRegistry, room_locks
from app.domain.booking_state import BookingStatus, assert_booking_transition
from app.domain.room_state import RoomStatus, TransitionKind
from app.models.booking import Booking
from app.models.room import Room
from app.services.room_transition_service import (
    RoomTransitionService,
    TransitionResult,
    room_transition_service,
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CheckInResult:
    booking: Booking
    room: Room


@dataclass(frozen=True)
class CheckoutResult:
    booking: Booking | None
    room: Room
    late_penalty: Decimal
    room_released: bool = True


def calculate_late_penalty(
    check_out_date: date,
    price_per_night: Decimal,
    now: datetime,
    rate: float | None = None,
) -> Decimal:
    """Penalty owed when checking out after the end of ``check_out_date`` (UTC)."""
    deadline = datetime.combine(check_out_date, time.max, tzinfo=UTC)
    if now <= deadline:
        return Decimal("0.00")
    rate = settings.late_checkout_penalty_rate if rate is None else rate
    return (Decimal(price_per_night) * Decimal(str(rate))).quantize(CENTS, rounding=ROUND_HALF_UP)


class BookingLifecycleService:
    """Drives booking status and the matching automatic room transitions."""

    def __init__(
        self,
        transitions: RoomTransitionService = room_transition_service,
        locks: RoomLockRegistry = room_locks,
    ) -> None:
        self._transitions = transitions
        self._locks = locks

    async def check_in(
        self,
        db: AsyncSession,
        actor_id: UUID,
        booking_id: UUID,
        today: date | None = None,
    ) -> CheckInResult:
        """Mark a CONFIRMED booking CHECKED_IN and its room OCCUPIED."""
        today = today or datetime.now(UTC).date()

        booking = await self._get_booking(db, booking_id)
        async with self._locks.hold(booking.room_id):
            booking = await self._get_booking(db, booking_id, for_update=True)
            if today < booking.check_in_date:
                raise InvalidBookingStatus("Cannot check in before the scheduled check-in date")
            if booking.status != BookingStatus.CONFIRMED.value:
                raise InvalidBookingStatus(f"Cannot check in booking with status: {booking.status}")

            assert_booking_transition(booking.status, BookingStatus.CHECKED_IN.value)
            booking.status = BookingStatus.CHECKED_IN.value
            await db.flush()

            result = await self._transitions.request_transition(
                db,
                booking.room_id,
                RoomStatus.OCCUPIED,
                actor_id,
                TransitionKind.AUTOMATIC,
                booking_id=booking.id,
                commit=False,
            )
            if not result.ok:
                await self._abandon(db, result, booking, BookingStatus.CONFIRMED.value)

            await db.commit()

        logger.info(f"Booking {booking.id} checked in to room {booking.room_id} by {actor_id}")
        return CheckInResult(booking=booking, room=result.room)

    async def check_out(
        self,
        db: AsyncSession,
        actor_id: UUID,
        room_id: UUID,
        now: datetime | None = None,
    ) -> CheckoutResult:
        """Mark the room's CHECKED_IN booking CHECKED_OUT and the room AVAILABLE.

        Without an active booking the room transition is still requested, so
        the refused attempt lands in the audit trail.

        If staff moved the room out of OCCUPIED while the guest stayed (the
        emergency MAINTENANCE override), the booking is still closed. The
        refused AVAILABLE request is audited and the room keeps its status
        until staff release it; ``room_released`` is False in that case.
        """
        now = now or datetime.now(UTC)

        async with self._locks.hold(room_id):
            room = await db.get(Room, room_id, populate_existing=True)
            booking = await self._get_active_booking(db, room_id)
            room_occupied = room is not None and room.status == RoomStatus.OCCUPIED.value

            late_penalty = Decimal("0.00")
            previous_cost: Decimal | None = None
            if booking is not None and room is not None:
                assert_booking_transition(booking.status, BookingStatus.CHECKED_OUT.value)
                late_penalty = calculate_late_penalty(
                    booking.check_out_date, room.price_per_night, now
                )
                previous_cost = booking.total_cost
                booking.status = BookingStatus.CHECKED_OUT.value
                booking.total_cost = Decimal(booking.total_cost) + late_penalty
                await db.flush()

            result = await self._transitions.request_transition(
                db,
                room_id,
                RoomStatus.AVAILABLE,
                actor_id,
                TransitionKind.AUTOMATIC,
                booking_id=booking.id if booking is not None else None,
                commit=False,
            )
            if not result.ok:
                overridden = (
                    booking is not None
                    and room is not None
                    and not room_occupied
                    and result.error.kind is TransitionErrorKind.INVALID_TRANSITION
                )
                if not overridden:
                    if booking is not None and previous_cost is not None:
                        booking.total_cost = previous_cost
                    await self._abandon(db, result, booking, BookingStatus.CHECKED_IN.value)

                await db.commit()
                logger.warning(
                    f"Booking {booking.id} checked out of room {room_id} by {actor_id}; "
                    f"room left {room.status} for staff release ({result.error.reason})"
                )
                return CheckoutResult(
                    booking=booking, room=room, late_penalty=late_penalty, room_released=False
                )

            await db.commit()

        logger.info(
            f"Room {room_id} checked out by {actor_id} "
            f"(booking={booking.id if booking else None}, late_penalty={late_penalty})"
        )
        return CheckoutResult(booking=booking, room=result.room, late_penalty=late_penalty)

    async def _abandon(
        self,
        db: AsyncSession,
        result: TransitionResult,
        booking: Booking | None,
        previous_status: str,
    ) -> None:
        """Undo the booking change, keep the rejected audit record, raise the refusal."""
        error: TransitionError = result.error
        if error.kind is not TransitionErrorKind.UNAVAILABLE:
            # Storage failures already rolled the whole transaction back
            if booking is not None:
                booking.status = previous_status
            await db.commit()
        raise error

    async def _get_booking(
        self, db: AsyncSession, booking_id: UUID, for_update: bool = False
    ) -> Booking:
        query = select(Booking).where(Booking.id == booking_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def _get_active_booking(self, db: AsyncSession, room_id: UUID) -> Booking | None:
        result = await db.execute(
            select(Booking)
            .where(
                Booking.room_id == room_id,
                Booking.status == BookingStatus.CHECKED_IN.value,
            )
            .order_by(Booking.check_in_date.desc())
            .limit(1)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()


booking_lifecycle_service = BookingLifecycleService()
