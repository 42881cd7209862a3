"""Core utilities and security modules."""

from app.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    InvalidBookingStatus,
    NotFoundError,
    TransitionError,
    TransitionErrorKind,
    ValidationError,
)

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "InvalidBookingStatus",
    "NotFoundError",
    "TransitionError",
    "TransitionErrorKind",
    "ValidationError",
]
