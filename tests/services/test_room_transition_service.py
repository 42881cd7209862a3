"""Transition authority against a real (SQLite) database."""

import asyncio
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import (
    InvalidRoomStatus,
    InvalidRoomTransition,
    RoomNotFound,
    StorageUnavailable,
    TransitionConflict,
    TransitionErrorKind,
    TransitionForbidden,
)
from app.core.immutability import ImmutabilityViolationError
from app.core.locks import RoomLockRegistry
from app.domain.booking_state import BookingStatus
from app.domain.room_state import RoomStatus, TransitionKind
from app.models.audit import RoomStatusAudit
from app.models.room import Room
from app.models.user import User
from app.services.room_transition_service import RoomTransitionService

MANUAL = TransitionKind.MANUAL
AUTO = TransitionKind.AUTOMATIC


@pytest.fixture
def service():
    return RoomTransitionService(locks=RoomLockRegistry())


class TestAcceptedTransitions:
    @pytest.mark.asyncio
    async def test_maintenance_to_cleaning(self, service, db, make_room, staff, audit_count, fetch):
        room = await make_room(RoomStatus.MAINTENANCE)

        result = await service.request_transition(db, room.id, RoomStatus.CLEANING, staff.id, MANUAL)

        assert result.ok
        assert result.room.status == "CLEANING"
        assert (await fetch(Room, room.id)).status == "CLEANING"
        assert await audit_count(room.id) == 1
        audit = await fetch(RoomStatusAudit, result.audit.id)
        assert audit.outcome == "accepted"
        assert audit.previous_status == "MAINTENANCE"
        assert audit.requested_status == "CLEANING"
        assert audit.new_status == "CLEANING"
        assert audit.transition_kind == "manual"
        assert audit.actor_id == staff.id
        assert audit.error_kind is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", [RoomStatus.CLEANING, RoomStatus.MAINTENANCE])
    async def test_release_to_available_without_booking(self, service, db, make_room, staff, fetch, start):
        room = await make_room(start)

        result = await service.request_transition(db, room.id, "AVAILABLE", staff.id, "manual")

        assert result.ok
        assert (await fetch(Room, room.id)).status == "AVAILABLE"

    @pytest.mark.asyncio
    async def test_emergency_maintenance_on_occupied_room(self, service, db, occupied_room, staff, fetch):
        room, _ = occupied_room

        result = await service.request_transition(db, room.id, RoomStatus.MAINTENANCE, staff.id, MANUAL)

        assert result.ok
        assert (await fetch(Room, room.id)).status == "MAINTENANCE"

    @pytest.mark.asyncio
    async def test_unwrap_returns_room(self, service, db, make_room, staff):
        room = await make_room(RoomStatus.AVAILABLE)
        result = await service.request_transition(db, room.id, RoomStatus.CLEANING, staff.id, MANUAL)
        assert result.unwrap().id == room.id


class TestRejectedTransitions:
    @pytest.mark.asyncio
    async def test_cleaning_to_occupied_needs_check_in(self, service, db, make_room, staff, audit_count, fetch):
        room = await make_room(RoomStatus.CLEANING)

        result = await service.request_transition(db, room.id, RoomStatus.OCCUPIED, staff.id, MANUAL)

        assert isinstance(result.error, TransitionForbidden)
        assert result.room is None
        assert (await fetch(Room, room.id)).status == "CLEANING"
        assert await audit_count(room.id) == 1
        audit = await fetch(RoomStatusAudit, result.audit.id)
        assert audit.outcome == "rejected"
        assert audit.error_kind == "forbidden"
        assert "check-in" in audit.reason
        assert audit.new_status is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", list(RoomStatus))
    async def test_manual_occupied_always_forbidden(self, service, db, make_room, staff, fetch, start):
        room = await make_room(start)

        result = await service.request_transition(db, room.id, RoomStatus.OCCUPIED, staff.id, MANUAL)

        assert result.error.kind is TransitionErrorKind.FORBIDDEN
        assert (await fetch(Room, room.id)).status == start.value

    @pytest.mark.asyncio
    async def test_manual_checkout_is_forbidden(self, service, db, occupied_room, staff, fetch):
        room, _ = occupied_room

        result = await service.request_transition(db, room.id, RoomStatus.AVAILABLE, staff.id, MANUAL)

        assert isinstance(result.error, TransitionForbidden)
        assert "check out" in result.error.reason
        assert (await fetch(Room, room.id)).status == "OCCUPIED"

    @pytest.mark.asyncio
    async def test_automatic_release_blocked_by_checked_in_guest(self, service, db, occupied_room, staff, fetch):
        room, _ = occupied_room

        result = await service.request_transition(db, room.id, RoomStatus.AVAILABLE, staff.id, AUTO)

        assert isinstance(result.error, TransitionConflict)
        assert (await fetch(Room, room.id)).status == "OCCUPIED"

    @pytest.mark.asyncio
    async def test_release_conflicts_with_stray_checked_in_booking(
        self, service, db, make_room, make_booking, guest, staff, fetch
    ):
        room = await make_room(RoomStatus.CLEANING)
        await make_booking(room, guest, status=BookingStatus.CHECKED_IN)

        result = await service.request_transition(db, room.id, RoomStatus.AVAILABLE, staff.id, MANUAL)

        assert isinstance(result.error, TransitionConflict)
        assert result.error.status_code == 409
        assert (await fetch(Room, room.id)).status == "CLEANING"

    @pytest.mark.asyncio
    async def test_checked_out_bookings_do_not_conflict(self, service, db, make_room, make_booking, guest, staff):
        room = await make_room(RoomStatus.CLEANING)
        await make_booking(room, guest, status=BookingStatus.CHECKED_OUT)
        await make_booking(room, guest, status=BookingStatus.CANCELLED)

        result = await service.request_transition(db, room.id, RoomStatus.AVAILABLE, staff.id, MANUAL)

        assert result.ok

    @pytest.mark.asyncio
    async def test_self_transition_rejected(self, service, db, make_room, staff, audit_count):
        room = await make_room(RoomStatus.AVAILABLE)

        result = await service.request_transition(db, room.id, RoomStatus.AVAILABLE, staff.id, MANUAL)

        assert isinstance(result.error, InvalidRoomTransition)
        assert await audit_count(room.id) == 1

    @pytest.mark.asyncio
    async def test_automatic_cannot_target_cleaning(self, service, db, occupied_room, staff, fetch):
        room, _ = occupied_room

        result = await service.request_transition(db, room.id, RoomStatus.CLEANING, staff.id, AUTO)

        assert isinstance(result.error, InvalidRoomTransition)
        assert (await fetch(Room, room.id)).status == "OCCUPIED"

    @pytest.mark.asyncio
    async def test_unknown_room(self, service, db, staff, audit_count):
        room_id = uuid4()

        result = await service.request_transition(db, room_id, RoomStatus.CLEANING, staff.id, MANUAL)

        assert isinstance(result.error, RoomNotFound)
        assert await audit_count(room_id) == 1
        assert result.audit.previous_status is None

    @pytest.mark.asyncio
    async def test_status_outside_domain(self, service, db, make_room, staff, fetch):
        room = await make_room(RoomStatus.CLEANING)

        result = await service.request_transition(db, room.id, "DIRTY", staff.id, MANUAL)

        assert isinstance(result.error, InvalidRoomStatus)
        audit = await fetch(RoomStatusAudit, result.audit.id)
        assert audit.requested_status == "DIRTY"
        assert audit.error_kind == "invalid_status"
        assert (await fetch(Room, room.id)).status == "CLEANING"

    @pytest.mark.asyncio
    async def test_unknown_transition_kind(self, service, db, make_room, staff):
        room = await make_room(RoomStatus.CLEANING)

        result = await service.request_transition(db, room.id, RoomStatus.AVAILABLE, staff.id, "system")

        assert isinstance(result.error, InvalidRoomStatus)
        assert "transition kind" in result.error.reason

    @pytest.mark.asyncio
    async def test_unwrap_raises_error(self, service, db, make_room, staff):
        room = await make_room(RoomStatus.CLEANING)
        result = await service.request_transition(db, room.id, RoomStatus.OCCUPIED, staff.id, MANUAL)
        with pytest.raises(TransitionForbidden):
            result.unwrap()


class TestAuditTrail:
    @pytest.mark.asyncio
    async def test_every_call_adds_exactly_one_record(self, service, db, make_room, staff, audit_count):
        room = await make_room(RoomStatus.AVAILABLE)
        requests = [
            (RoomStatus.CLEANING, MANUAL),  # ok
            (RoomStatus.OCCUPIED, MANUAL),  # forbidden
            (RoomStatus.CLEANING, MANUAL),  # self
            (RoomStatus.MAINTENANCE, MANUAL),  # ok
            ("BROKEN", MANUAL),  # invalid status
            (RoomStatus.AVAILABLE, AUTO),  # not an automatic edge
            (RoomStatus.AVAILABLE, MANUAL),  # ok
        ]

        for expected, (status, kind) in enumerate(requests, start=1):
            await service.request_transition(db, room.id, status, staff.id, kind)
            assert await audit_count(room.id) == expected

        outcomes = (
            await db.execute(
                select(RoomStatusAudit.outcome)
                .where(RoomStatusAudit.room_id == room.id)
                .order_by(RoomStatusAudit.id)
            )
        ).scalars().all()
        assert outcomes == [
            "accepted",
            "rejected",
            "rejected",
            "accepted",
            "rejected",
            "rejected",
            "accepted",
        ]

    @pytest.mark.asyncio
    async def test_audit_records_cannot_be_updated(self, service, db, make_room, staff):
        room = await make_room(RoomStatus.AVAILABLE)
        result = await service.request_transition(db, room.id, RoomStatus.CLEANING, staff.id, MANUAL)

        result.audit.reason = "tampered"
        with pytest.raises(ImmutabilityViolationError):
            await db.flush()
        await db.rollback()

    @pytest.mark.asyncio
    async def test_audit_records_cannot_be_deleted(self, service, db, make_room, staff):
        room = await make_room(RoomStatus.AVAILABLE)
        result = await service.request_transition(db, room.id, RoomStatus.CLEANING, staff.id, MANUAL)

        await db.delete(result.audit)
        with pytest.raises(ImmutabilityViolationError):
            await db.flush()
        await db.rollback()

    @pytest.mark.asyncio
    async def test_records_outlive_the_actor(self, service, db, make_room, make_user, fetch):
        room = await make_room(RoomStatus.AVAILABLE)
        departed = await make_user("staff")
        result = await service.request_transition(db, room.id, RoomStatus.CLEANING, departed.id, MANUAL)

        await db.delete(departed)
        await db.commit()

        assert await fetch(User, departed.id) is None
        audit = await fetch(RoomStatusAudit, result.audit.id)
        assert audit.actor_id == departed.id
        assert audit.new_status == "CLEANING"


class TestStorageFailures:
    @pytest.mark.asyncio
    async def test_timeout_waiting_for_room_is_unavailable(self, db, make_room, staff, audit_count, fetch):
        locks = RoomLockRegistry()
        service = RoomTransitionService(locks=locks)
        room = await make_room(RoomStatus.AVAILABLE)
        held = asyncio.Event()
        release = asyncio.Event()

        async def hold_room():
            async with locks.hold(room.id):
                held.set()
                await release.wait()

        holder = asyncio.create_task(hold_room())
        await held.wait()
        try:
            result = await service.request_transition(
                db, room.id, RoomStatus.CLEANING, staff.id, MANUAL, timeout=0.05
            )
        finally:
            release.set()
            await holder

        assert isinstance(result.error, StorageUnavailable)
        assert result.error.status_code == 503
        assert result.audit is None
        assert (await fetch(Room, room.id)).status == "AVAILABLE"
        assert await audit_count(room.id) == 0

    @pytest.mark.asyncio
    async def test_database_error_is_unavailable(self, service, db, make_room, staff, audit_count, monkeypatch):
        room = await make_room(RoomStatus.AVAILABLE)

        async def broken(db, room_id):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(service, "_lock_room", broken)

        result = await service.request_transition(db, room.id, RoomStatus.CLEANING, staff.id, MANUAL)

        assert result.error.kind is TransitionErrorKind.UNAVAILABLE
        assert await audit_count(room.id) == 0

    @pytest.mark.asyncio
    async def test_slow_commit_is_not_cut_short(self, service, db, make_room, staff, audit_count, fetch, monkeypatch):
        room = await make_room(RoomStatus.AVAILABLE)
        commit = db.commit

        async def slow_commit():
            await asyncio.sleep(0.1)
            await commit()

        monkeypatch.setattr(db, "commit", slow_commit)

        result = await service.request_transition(
            db, room.id, RoomStatus.CLEANING, staff.id, MANUAL, timeout=0.05
        )

        assert result.ok
        assert (await fetch(Room, room.id)).status == "CLEANING"
        assert await audit_count(room.id) == 1
