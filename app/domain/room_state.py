"""Room status state machine.

States: AVAILABLE, OCCUPIED, CLEANING, MAINTENANCE. None is initial or
terminal. OCCUPIED is entered and left only by the booking lifecycle
(``automatic`` transitions); staff (``manual``) handle housekeeping and
maintenance moves, plus the emergency OCCUPIED → MAINTENANCE override.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from app.core.exceptions import TransitionErrorKind


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    CLEANING = "CLEANING"
    MAINTENANCE = "MAINTENANCE"


class TransitionKind(str, Enum):
    MANUAL = "manual"  # staff-initiated
    AUTOMATIC = "automatic"  # booking check-in / check-out only


MANUAL_TRANSITIONS: Mapping[RoomStatus, frozenset[RoomStatus]] = MappingProxyType({
    RoomStatus.AVAILABLE: frozenset({RoomStatus.CLEANING, RoomStatus.MAINTENANCE}),
    RoomStatus.OCCUPIED: frozenset({RoomStatus.MAINTENANCE}),  # emergency override
    RoomStatus.CLEANING: frozenset({RoomStatus.AVAILABLE, RoomStatus.MAINTENANCE}),
    RoomStatus.MAINTENANCE: frozenset({RoomStatus.AVAILABLE, RoomStatus.CLEANING}),
})

AUTOMATIC_TRANSITIONS: Mapping[RoomStatus, frozenset[RoomStatus]] = MappingProxyType({
    RoomStatus.AVAILABLE: frozenset({RoomStatus.OCCUPIED}),  # check-in
    RoomStatus.OCCUPIED: frozenset({RoomStatus.AVAILABLE}),  # check-out
    RoomStatus.CLEANING: frozenset(),
    RoomStatus.MAINTENANCE: frozenset(),
})

TRANSITION_TABLE: Mapping[TransitionKind, Mapping[RoomStatus, frozenset[RoomStatus]]] = MappingProxyType({
    TransitionKind.MANUAL: MANUAL_TRANSITIONS,
    TransitionKind.AUTOMATIC: AUTOMATIC_TRANSITIONS,
})

AUTOMATIC_TARGETS = frozenset({RoomStatus.OCCUPIED, RoomStatus.AVAILABLE})


def parse_room_status(value: "str | RoomStatus") -> RoomStatus | None:
    """Return the matching RoomStatus, or None if ``value`` is outside the domain."""
    try:
        return RoomStatus(value)
    except ValueError:
        return None


def parse_transition_kind(value: "str | TransitionKind") -> TransitionKind | None:
    try:
        return TransitionKind(value)
    except ValueError:
        return None


def legal_manual_targets(current_status: RoomStatus) -> frozenset[RoomStatus]:
    """Statuses staff may move a room to from ``current_status``."""
    return MANUAL_TRANSITIONS.get(current_status, frozenset())


@dataclass(frozen=True)
class TransitionContext:
    """Everything the rules need to judge one request."""

    current: RoomStatus
    requested: RoomStatus
    kind: TransitionKind
    has_active_booking: bool


@dataclass(frozen=True)
class RuleViolation:
    rule: str
    kind: TransitionErrorKind
    reason: str


Rule = Callable[[TransitionContext], "RuleViolation | None"]


def occupied_requires_automatic(ctx: TransitionContext) -> RuleViolation | None:
    if ctx.requested is RoomStatus.OCCUPIED and ctx.kind is not TransitionKind.AUTOMATIC:
        return RuleViolation(
            "occupied_requires_automatic",
            TransitionErrorKind.FORBIDDEN,
            "Rooms become OCCUPIED only through check-in; use check-in",
        )
    return None


def occupied_room_guard(ctx: TransitionContext) -> RuleViolation | None:
    if ctx.kind is TransitionKind.AUTOMATIC:
        if ctx.requested not in AUTOMATIC_TARGETS:
            return RuleViolation(
                "occupied_room_guard",
                TransitionErrorKind.INVALID_TRANSITION,
                f"Automatic transitions may only target OCCUPIED or AVAILABLE, not {ctx.requested.value}",
            )
        return None
    if ctx.current is RoomStatus.OCCUPIED and ctx.requested is not RoomStatus.MAINTENANCE:
        return RuleViolation(
            "occupied_room_guard",
            TransitionErrorKind.FORBIDDEN,
            "Room is occupied; guest must check out first",
        )
    return None


def active_booking_guard(ctx: TransitionContext) -> RuleViolation | None:
    if ctx.requested is RoomStatus.AVAILABLE and ctx.has_active_booking:
        return RuleViolation(
            "active_booking_guard",
            TransitionErrorKind.CONFLICT,
            "A guest is checked in to this room",
        )
    return None


def available_source_guard(ctx: TransitionContext) -> RuleViolation | None:
    if ctx.requested is RoomStatus.AVAILABLE and ctx.current is RoomStatus.AVAILABLE:
        return RuleViolation(
            "available_source_guard",
            TransitionErrorKind.INVALID_TRANSITION,
            "Room is already AVAILABLE",
        )
    return None


def transition_table_lookup(ctx: TransitionContext) -> RuleViolation | None:
    allowed = TRANSITION_TABLE[ctx.kind].get(ctx.current, frozenset())
    if ctx.requested not in allowed:
        return RuleViolation(
            "transition_table_lookup",
            TransitionErrorKind.INVALID_TRANSITION,
            f"Invalid {ctx.kind.value} room transition: {ctx.current.value} → {ctx.requested.value}",
        )
    return None


# Evaluated in order; the first violation wins.
TRANSITION_RULES: tuple[Rule, ...] = (
    occupied_requires_automatic,
    occupied_room_guard,
    active_booking_guard,
    available_source_guard,
    transition_table_lookup,
)


def evaluate_transition(ctx: TransitionContext) -> RuleViolation | None:
    """Run the rule chain; None means the transition is legal."""
    for rule in TRANSITION_RULES:
        violation = rule(ctx)
        if violation is not None:
            return violation
    return None
