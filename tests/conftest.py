"""Shared fixtures: a throwaway SQLite database per test and model factories."""

import os

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite://")

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app import models  # noqa: F401  (registers tables and audit immutability)
from app.database import Base
from app.domain.booking_state import BookingStatus
from app.domain.room_state import RoomStatus
from app.models.audit import RoomStatusAudit
from app.models.booking import Booking
from app.models.room import Room
from app.models.user import User


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def today() -> date:
    return datetime.now(UTC).date()


@pytest.fixture
def make_user(db):
    async def _make_user(role: str = "staff", email: str | None = None) -> User:
        user = User(email=email or f"{role}-{uuid4().hex[:8]}@hotel.com", role=role, full_name=role.title())
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest.fixture
def make_room(db):
    counter = iter(range(100, 1000))

    async def _make_room(
        status: RoomStatus = RoomStatus.AVAILABLE,
        price: str = "80.00",
        room_type: str = "doble",
    ) -> Room:
        room = Room(
            number=str(next(counter)),
            type=room_type,
            price_per_night=Decimal(price),
            status=status.value,
        )
        db.add(room)
        await db.commit()
        return room

    return _make_room


@pytest.fixture
def make_booking(db, today):
    async def _make_booking(
        room: Room,
        user: User,
        status: BookingStatus = BookingStatus.CONFIRMED,
        check_in_date: date | None = None,
        check_out_date: date | None = None,
        total_cost: str = "240.00",
        created_at: datetime | None = None,
    ) -> Booking:
        check_in_date = check_in_date or today
        booking = Booking(
            user_id=user.id,
            room_id=room.id,
            check_in_date=check_in_date,
            check_out_date=check_out_date or check_in_date + timedelta(days=3),
            total_cost=Decimal(total_cost),
            status=status.value,
        )
        if created_at is not None:
            booking.created_at = created_at
        db.add(booking)
        await db.commit()
        return booking

    return _make_booking


@pytest_asyncio.fixture
async def staff(make_user) -> User:
    return await make_user("staff")


@pytest_asyncio.fixture
async def guest(make_user) -> User:
    return await make_user("client")


@pytest_asyncio.fixture
async def occupied_room(make_room, make_booking, guest, today):
    """An OCCUPIED room with its CHECKED_IN booking."""
    room = await make_room(RoomStatus.OCCUPIED)
    booking = await make_booking(
        room,
        guest,
        status=BookingStatus.CHECKED_IN,
        check_in_date=today - timedelta(days=2),
        check_out_date=today + timedelta(days=1),
    )
    return room, booking


@pytest.fixture
def audit_count(session_factory):
    async def _audit_count(room_id=None) -> int:
        async with session_factory() as session:
            query = select(func.count()).select_from(RoomStatusAudit)
            if room_id is not None:
                query = query.where(RoomStatusAudit.room_id == room_id)
            return (await session.execute(query)).scalar_one()

    return _audit_count


@pytest.fixture
def fetch(session_factory):
    """Load a row through a fresh session, bypassing the test session's identity map."""

    async def _fetch(model, ident):
        async with session_factory() as session:
            return await session.get(model, ident)

    return _fetch
