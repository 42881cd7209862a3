"""Custom application exceptions."""

from enum import Enum
from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Validation error exception."""

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthenticationError(AppException):
    """Authentication failed exception."""

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(AppException):
    """Authorization denied exception."""

    def __init__(self, detail: str = "You don't have permission to access this resource") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidBookingStatus(AppException):
    """Invalid booking status for operation."""

    def __init__(self, detail: str = "This operation is not allowed for the current booking status") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


# ============ Room status transitions ============


class TransitionErrorKind(str, Enum):
    """Why a room status transition was refused."""

    NOT_FOUND = "not_found"
    INVALID_STATUS = "invalid_status"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INVALID_TRANSITION = "invalid_transition"
    UNAVAILABLE = "unavailable"


class TransitionError(AppException):
    """A refused room status transition.

    Returned (not raised) by the transition authority inside a
    ``TransitionResult``; HTTP handlers and the booking lifecycle raise it.
    """

    kind: TransitionErrorKind = TransitionErrorKind.INVALID_TRANSITION
    http_status: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(status_code=self.http_status, detail=reason)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason!r})"


class RoomNotFound(TransitionError):
    kind = TransitionErrorKind.NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND


class InvalidRoomStatus(TransitionError):
    kind = TransitionErrorKind.INVALID_STATUS
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY


class TransitionForbidden(TransitionError):
    kind = TransitionErrorKind.FORBIDDEN
    http_status = status.HTTP_403_FORBIDDEN


class TransitionConflict(TransitionError):
    kind = TransitionErrorKind.CONFLICT
    http_status = status.HTTP_409_CONFLICT


class InvalidRoomTransition(TransitionError):
    kind = TransitionErrorKind.INVALID_TRANSITION
    http_status = status.HTTP_400_BAD_REQUEST


class StorageUnavailable(TransitionError):
    kind = TransitionErrorKind.UNAVAILABLE
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


TRANSITION_ERRORS: dict[TransitionErrorKind, type[TransitionError]] = {
    cls.kind: cls
    for cls in (
        RoomNotFound,
        InvalidRoomStatus,
        TransitionForbidden,
        TransitionConflict,
        InvalidRoomTransition,
        StorageUnavailable,
    )
}
