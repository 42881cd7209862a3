"""Background tasks for automatic booking maintenance."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import async_session_factory
from app.domain.booking_state import BookingStatus, assert_booking_transition
from app.models.booking import Booking
from app.services.audit_service import audit_service

logger = logging.getLogger(__name__)

EXPIRE_BOOKINGS = "EXPIRE_BOOKINGS"

# Flag to stop the background task
_stop_booking_expiry = False


async def expire_stale_bookings(
    db: AsyncSession,
    now: datetime | None = None,
    max_age: timedelta | None = None,
) -> list[UUID]:
    """Cancel CONFIRMED bookings older than ``max_age``.

    A CONFIRMED booking never occupies a room, so room status is untouched.
    The cancellations and their audit entry, attributed to the system user,
    are committed together; without a system user nothing is cancelled.

    Returns:
        Ids of the cancelled bookings
    """
    now = now or datetime.now(UTC)
    max_age = max_age or timedelta(hours=settings.booking_expiry_hours)

    result = await db.execute(
        select(Booking)
        .where(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.created_at < now - max_age,
        )
        .with_for_update()
    )
    expired = list(result.scalars().all())
    for booking in expired:
        assert_booking_transition(booking.status, BookingStatus.CANCELLED.value)
        booking.status = BookingStatus.CANCELLED.value

    if expired:
        await audit_service.log_system_action(
            db,
            EXPIRE_BOOKINGS,
            [booking.id for booking in expired],
            f"bookings older than {max_age.total_seconds() / 3600:g} hours in CONFIRMED status",
        )
    await db.commit()

    return [booking.id for booking in expired]


async def run_booking_expiry(trigger: str = "scheduled") -> list[UUID] | None:
    """Run one expiry pass in its own session."""
    async with async_session_factory() as db:
        logger.info(f"Starting booking expiry (trigger: {trigger})")
        try:
            ids = await expire_stale_bookings(db)
        except Exception as e:
            await db.rollback()
            logger.error(f"Booking expiry failed: {e}")
            return None

        logger.info(f"Booking expiry completed: expired {len(ids)} booking(s)")
        if ids:
            logger.info(f"Expired booking IDs: {', '.join(str(i) for i in ids)}")
        return ids


async def start_booking_expiry_scheduler() -> None:
    """Background task that expires stale bookings on an interval."""
    global _stop_booking_expiry
    _stop_booking_expiry = False

    interval = settings.booking_expiry_interval_seconds
    logger.info(f"Booking expiry scheduler started (every {interval}s)")

    while not _stop_booking_expiry:
        await run_booking_expiry(trigger="scheduled")

        # Wait for next interval (check stop flag every second)
        for _ in range(interval):
            if _stop_booking_expiry:
                break
            await asyncio.sleep(1)

    logger.info("Booking expiry scheduler stopped")


def stop_booking_expiry_scheduler() -> None:
    """Signal the booking expiry scheduler to stop."""
    global _stop_booking_expiry
    _stop_booking_expiry = True
