"""Append-only enforcement for the room status audit trail using SQLAlchemy events."""

import logging
from datetime import UTC, datetime

from sqlalchemy import event

from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_registered = False


class ImmutabilityViolationError(ValidationError):
    """Raised when attempting to modify or delete an audit record."""

    def __init__(self, model_name: str, operation: str, record_id: str):
        self.model_name = model_name
        self.operation = operation
        self.record_id = record_id
        super().__init__(
            f"Immutability violation: Cannot {operation} {model_name} record {record_id}. "
            "Audit records are append-only."
        )


def _log_immutability_violation(model_name: str, operation: str, record_id: str) -> None:
    logger.error(
        f"IMMUTABILITY_VIOLATION: Attempted to {operation} {model_name} "
        f"record_id={record_id} at {datetime.now(UTC).isoformat()}"
    )


def _reject(operation: str):
    def listener(mapper, connection, target):
        model_name = type(target).__name__
        _log_immutability_violation(model_name, operation, str(target.id))
        raise ImmutabilityViolationError(model_name, operation, str(target.id))

    return listener


def register_immutability_enforcement() -> None:
    """Register mapper listeners that block UPDATE and DELETE of audit rows.

    Safe to call more than once.
    """
    global _registered
    if _registered:
        return

    from app.models.audit import AuditLog, RoomStatusAudit

    for model in (RoomStatusAudit, AuditLog):
        event.listen(model, "before_update", _reject("UPDATE"))
        event.listen(model, "before_delete", _reject("DELETE"))
    _registered = True

    logger.info("Immutability enforcement registered for audit tables")
