"""Audit trail models: room status attempts and automated system actions."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.utils.time import utcnow

AuditId = BigInteger().with_variant(Integer, "sqlite")


class RoomStatusAudit(Base):
    """One row per room status transition attempt, accepted or rejected.

    Append-only; see ``app.core.immutability``.
    """

    __tablename__ = "room_status_audit"

    id: Mapped[int] = mapped_column(AuditId, primary_key=True, autoincrement=True)
    # No foreign keys: rows must survive deletion of the user, room or booking,
    # and attempts against unknown rooms are recorded too
    actor_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    room_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    booking_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)

    previous_status: Mapped[str | None] = mapped_column(String(20))
    requested_status: Mapped[str] = mapped_column(String(50), nullable=False)
    new_status: Mapped[str | None] = mapped_column(String(20))
    transition_kind: Mapped[str] = mapped_column(String(20), nullable=False)  # manual, automatic

    outcome: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # accepted, rejected
    error_kind: Mapped[str | None] = mapped_column(String(30))
    reason: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    @property
    def accepted(self) -> bool:
        return self.outcome == "accepted"


class AuditLog(Base):
    """Actions taken by the system actor (scheduled jobs)."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(AuditId, primary_key=True, autoincrement=True)
    actor_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)

    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)  # e.g. EXPIRE_BOOKINGS
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
