from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role attached to a verified subject."""

    EMPLOYEE = "employee"
    REVIEWER = "reviewer"


class PunchKind(str, Enum):
    """Kinds of punch, declared in the order they must happen during a day."""

    CLOCK_IN = "clock_in"
    LUNCH_OUT = "lunch_out"
    LUNCH_IN = "lunch_in"
    CLOCK_OUT = "clock_out"


PUNCH_SEQUENCE: tuple[PunchKind, ...] = (
    PunchKind.CLOCK_IN,
    PunchKind.LUNCH_OUT,
    PunchKind.LUNCH_IN,
    PunchKind.CLOCK_OUT,
)


class RequestStatus(str, Enum):
    """Lifecycle of a correction request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


DECISIONS = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})


class SequenceRule(str, Enum):
    """Which ledger rule rejected a punch."""

    DUPLICATE_KIND = "duplicate_kind"
    OUT_OF_SEQUENCE = "out_of_sequence"


class ActionKind(str, Enum):
    """Kinds of device-side action waiting for delivery."""

    PUNCH = "punch"
    CORRECTION = "correction"


class ActionState(str, Enum):
    QUEUED = "QUEUED"
    IN_FLIGHT = "IN_FLIGHT"
