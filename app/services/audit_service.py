"""Audit trail service: room status attempts and system actions."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import NotFoundError, TransitionError
from app.models.audit import AuditLog, RoomStatusAudit
from app.models.user import User

OUTCOME_ACCEPTED = "accepted"
OUTCOME_REJECTED = "rejected"


def _raw(value) -> str:
    """Plain string for an enum member or a raw request value."""
    return str(getattr(value, "value", value))


class AuditService:
    """Service for append-only room status audit logging."""

    def record_transition(
        self,
        db: AsyncSession,
        actor_id: UUID,
        room_id: UUID,
        previous_status: str | None,
        requested_status: str,
        transition_kind: str,
        error: TransitionError | None = None,
        booking_id: UUID | None = None,
    ) -> RoomStatusAudit:
        """Stage one audit row in the caller's transaction.

        Args:
            db: Database session
            actor_id: User who requested the change
            room_id: Target room (may not exist)
            previous_status: Room status before the attempt, None if the room is unknown
            requested_status: Status as requested, even if outside the domain
            transition_kind: "manual" or "automatic"
            error: Rejection, or None when the transition was applied
            booking_id: Booking driving an automatic transition

        Returns:
            The pending audit row
        """
        audit = RoomStatusAudit(
            actor_id=actor_id,
            room_id=room_id,
            booking_id=booking_id,
            previous_status=previous_status,
            requested_status=_raw(requested_status),
            new_status=_raw(requested_status) if error is None else None,
            transition_kind=_raw(transition_kind),
            outcome=OUTCOME_ACCEPTED if error is None else OUTCOME_REJECTED,
            error_kind=error.kind.value if error is not None else None,
            reason=error.reason if error is not None else None,
        )
        db.add(audit)
        return audit

    async def list_for_room(
        self,
        db: AsyncSession,
        room_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> list[RoomStatusAudit]:
        """Audit history of one room, newest first."""
        result = await db.execute(
            select(RoomStatusAudit)
            .where(RoomStatusAudit.room_id == room_id)
            .order_by(RoomStatusAudit.created_at.desc(), RoomStatusAudit.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_recent(
        self,
        db: AsyncSession,
        outcome: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[RoomStatusAudit]:
        query = select(RoomStatusAudit)
        if outcome:
            query = query.where(RoomStatusAudit.outcome == outcome)
        result = await db.execute(
            query.order_by(RoomStatusAudit.created_at.desc(), RoomStatusAudit.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count(
        self,
        db: AsyncSession,
        room_id: UUID | None = None,
        outcome: str | None = None,
    ) -> int:
        query = select(func.count()).select_from(RoomStatusAudit)
        if room_id is not None:
            query = query.where(RoomStatusAudit.room_id == room_id)
        if outcome:
            query = query.where(RoomStatusAudit.outcome == outcome)
        result = await db.execute(query)
        return result.scalar_one()

    async def get_system_user(self, db: AsyncSession) -> User:
        """The user that automated jobs act as."""
        result = await db.execute(select(User).where(User.email == settings.system_user_email))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("System user", settings.system_user_email)
        return user

    async def log_system_action(
        self,
        db: AsyncSession,
        action: str,
        affected_ids: list[UUID],
        criteria: str,
    ) -> AuditLog:
        """Stage an audit entry for work done by the system actor.

        Args:
            db: Database session (the caller commits)
            action: Action name (e.g., "EXPIRE_BOOKINGS")
            affected_ids: Ids of the rows the action changed
            criteria: Human-readable selection rule

        Returns:
            The pending audit log entry
        """
        system_user = await self.get_system_user(db)
        audit = AuditLog(
            actor_id=system_user.id,
            action=action,
            details={
                "action_type": action,
                "affected_count": len(affected_ids),
                "affected_ids": [str(i) for i in affected_ids],
                "criteria": criteria,
            },
        )
        db.add(audit)
        return audit


audit_service = AuditService()
