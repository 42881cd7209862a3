"""Database models."""

from app.models.audit import AuditLog, RoomStatusAudit
from app.models.booking import Booking
from app.models.room import Room
from app.models.user import User

__all__ = [
    "User",
    "Room",
    "Booking",
    "RoomStatusAudit",
    "AuditLog",
]

from app.core.immutability import register_immutability_enforcement  # noqa: E402

register_immutability_enforcement()
