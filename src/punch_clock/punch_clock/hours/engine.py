"""Worked-hours math for one subject/day.

Pure functions. Inputs only need ``kind`` and ``timestamp`` attributes, so the
same code serves recorded punches and the effective (corrected) timeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import PUNCH_SEQUENCE, PunchKind
from ..core.logging_config import get_logger

logger = get_logger(__name__)


class TimedPunch(Protocol):
    kind: PunchKind
    timestamp: datetime


@dataclass(frozen=True)
class DailySummary:
    day: date
    punches: Sequence[TimedPunch]
    worked_minutes: int
    complete_day: bool
    next_expected_kind: Optional[PunchKind]

    @property
    def worked_hours(self) -> str:
        return format_minutes(self.worked_minutes)


def kind_lookup(punches: Iterable[TimedPunch]) -> Mapping[PunchKind, datetime]:
    """Map kind -> timestamp. With the ledger invariant there is one per kind."""
    return {p.kind: p.timestamp for p in punches}


def _interval_minutes(start: datetime, end: datetime, label: str) -> int:
    millis = int((end - start).total_seconds() * 1000)
    if millis < 0:
        logger.warning(
            "Negative %s interval (%s -> %s) counted as 0 minutes", label, start.isoformat(), end.isoformat()
        )
        return 0
    return millis // 60000


def compute_daily_minutes(punches: Iterable[TimedPunch]) -> int:
    """Worked minutes from the closed morning and afternoon intervals.

    An open interval (e.g. clock-in without lunch-out yet) adds nothing.
    """

    by_kind = kind_lookup(punches)
    clock_in = by_kind.get(PunchKind.CLOCK_IN)
    if clock_in is None:
        return 0

    total = 0
    lunch_out = by_kind.get(PunchKind.LUNCH_OUT)
    if lunch_out is not None:
        total += _interval_minutes(clock_in, lunch_out, "morning")

    lunch_in = by_kind.get(PunchKind.LUNCH_IN)
    clock_out = by_kind.get(PunchKind.CLOCK_OUT)
    if lunch_in is not None and clock_out is not None:
        total += _interval_minutes(lunch_in, clock_out, "afternoon")

    return total


def is_complete_day(punches: Iterable[TimedPunch]) -> bool:
    kinds = {p.kind for p in punches}
    return all(k in kinds for k in PUNCH_SEQUENCE)


def next_expected_kind(punches: Iterable[TimedPunch]) -> Optional[PunchKind]:
    kinds = {p.kind for p in punches}
    for kind in PUNCH_SEQUENCE:
        if kind not in kinds:
            return kind
    return None


def summarize_day(day: date, punches: Iterable[TimedPunch]) -> DailySummary:
    ordered = sorted(punches, key=lambda p: p.timestamp)
    return DailySummary(
        day=day,
        punches=ordered,
        worked_minutes=compute_daily_minutes(ordered),
        complete_day=is_complete_day(ordered),
        next_expected_kind=next_expected_kind(ordered),
    )


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
