"""Room inventory model."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.domain.room_state import RoomStatus
from app.utils.time import utcnow

if TYPE_CHECKING:
    from app.models.booking import Booking

ROOM_TYPES = ("simple", "doble", "suite")


class Room(Base):
    """A physical room.

    ``status`` is written only by the room transition authority.
    """

    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint(
            "status IN ('AVAILABLE', 'OCCUPIED', 'CLEANING', 'MAINTENANCE')",
            name="ck_rooms_status",
        ),
        CheckConstraint("type IN ('simple', 'doble', 'suite')", name="ck_rooms_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    number: Mapped[str] = mapped_column(String(10), unique=True, nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # simple, doble, suite
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RoomStatus.AVAILABLE.value, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="room")
