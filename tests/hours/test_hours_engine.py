from __future__ import annotations

import logging
from datetime import date, datetime

from punch_clock.adjustments.model import EffectivePunch
from punch_clock.core.enums import PunchKind
from punch_clock.hours.engine import (
    compute_daily_minutes,
    format_minutes,
    is_complete_day,
    next_expected_kind,
    summarize_day,
)
from punch_clock.punches.model import Punch

DAY = date(2026, 3, 2)


def _punch(pid: int, kind: PunchKind, hh: int, mm: int = 0, ss: int = 0) -> Punch:
    ts = datetime(2026, 3, 2, hh, mm, ss)
    return Punch(punch_id=pid, subject_id=1, kind=kind, timestamp=ts, created_at=ts)


def _full_day():
    return [
        _punch(1, PunchKind.CLOCK_IN, 8),
        _punch(2, PunchKind.LUNCH_OUT, 12),
        _punch(3, PunchKind.LUNCH_IN, 13),
        _punch(4, PunchKind.CLOCK_OUT, 17),
    ]


def test_full_day_is_480_minutes():
    assert compute_daily_minutes(_full_day()) == 480


def test_lone_clock_in_is_zero():
    assert compute_daily_minutes([_punch(1, PunchKind.CLOCK_IN, 8)]) == 0


def test_no_clock_in_is_zero_even_with_other_punches():
    assert compute_daily_minutes([_punch(3, PunchKind.LUNCH_IN, 13), _punch(4, PunchKind.CLOCK_OUT, 17)]) == 0


def test_morning_only_counts_until_lunch_out():
    punches = [_punch(1, PunchKind.CLOCK_IN, 8), _punch(2, PunchKind.LUNCH_OUT, 12, 30)]
    assert compute_daily_minutes(punches) == 270


def test_intervals_are_floored_separately():
    punches = [
        _punch(1, PunchKind.CLOCK_IN, 8, 0, 0),
        _punch(2, PunchKind.LUNCH_OUT, 8, 1, 59),
        _punch(3, PunchKind.LUNCH_IN, 9, 0, 0),
        _punch(4, PunchKind.CLOCK_OUT, 9, 1, 59),
    ]
    assert compute_daily_minutes(punches) == 2


def test_negative_interval_counts_zero_and_warns(caplog):
    punches = [
        _punch(1, PunchKind.CLOCK_IN, 8),
        _punch(2, PunchKind.LUNCH_OUT, 12),
        _punch(3, PunchKind.LUNCH_IN, 13),
        _punch(4, PunchKind.CLOCK_OUT, 12, 30),
    ]
    with caplog.at_level(logging.WARNING, logger="punch_clock"):
        assert compute_daily_minutes(punches) == 240
    assert any("Negative afternoon interval" in r.getMessage() for r in caplog.records)


def test_input_order_does_not_matter():
    assert compute_daily_minutes(list(reversed(_full_day()))) == 480


def test_effective_punches_are_accepted():
    effective = [EffectivePunch.from_punch(p) for p in _full_day()]
    assert compute_daily_minutes(effective) == 480


def test_next_expected_and_completeness():
    assert next_expected_kind([]) == PunchKind.CLOCK_IN
    assert next_expected_kind(_full_day()[:2]) == PunchKind.LUNCH_IN
    assert next_expected_kind(_full_day()) is None
    assert not is_complete_day(_full_day()[:3])
    assert is_complete_day(_full_day())


def test_summarize_day_sorts_and_formats():
    summary = summarize_day(DAY, list(reversed(_full_day())))

    assert [p.kind for p in summary.punches][0] == PunchKind.CLOCK_IN
    assert summary.worked_minutes == 480
    assert summary.worked_hours == "08:00"
    assert summary.complete_day
    assert summary.next_expected_kind is None


def test_format_minutes():
    assert format_minutes(0) == "00:00"
    assert format_minutes(495) == "08:15"
