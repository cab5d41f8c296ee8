from __future__ import annotations

from datetime import date, datetime

import pytest

from punch_clock.core.enums import PunchKind, SequenceRule
from punch_clock.core.exceptions import SequenceViolation, ValidationError
from punch_clock.punches.service import PunchLedger

DAY = date(2026, 3, 2)


def _at(hh: int, mm: int = 0, day: date = DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hh, mm)


@pytest.fixture
def ledger(punches_repo, clock):
    return PunchLedger(punches_repo, clock=clock)


def test_full_day_is_accepted_in_order(ledger):
    ledger.record_punch(1, "clock_in", _at(8))
    ledger.record_punch(1, "lunch_out", _at(12))
    ledger.record_punch(1, "lunch_in", _at(13))
    ledger.record_punch(1, "clock_out", _at(17))

    kinds = [p.kind for p in ledger.punches_for_day(1, DAY)]
    assert kinds == [PunchKind.CLOCK_IN, PunchKind.LUNCH_OUT, PunchKind.LUNCH_IN, PunchKind.CLOCK_OUT]


def test_duplicate_kind_is_rejected_before_sequence(ledger, punches_repo):
    ledger.record_punch(1, PunchKind.CLOCK_IN, _at(8))

    with pytest.raises(SequenceViolation) as exc:
        ledger.record_punch(1, PunchKind.CLOCK_IN, _at(8, 5))

    assert exc.value.rule == SequenceRule.DUPLICATE_KIND
    assert len(punches_repo.rows) == 1


def test_out_of_sequence_reports_expected_kind(ledger, punches_repo):
    with pytest.raises(SequenceViolation) as exc:
        ledger.record_punch(1, "lunch_out", _at(12))

    assert exc.value.rule == SequenceRule.OUT_OF_SEQUENCE
    assert exc.value.expected_kind == PunchKind.CLOCK_IN
    assert punches_repo.rows == {}


def test_skipping_lunch_is_out_of_sequence(ledger):
    ledger.record_punch(1, "clock_in", _at(8))

    with pytest.raises(SequenceViolation) as exc:
        ledger.record_punch(1, "clock_out", _at(17))

    assert exc.value.expected_kind == PunchKind.LUNCH_OUT


def test_nothing_is_accepted_after_clock_out(ledger):
    for kind, hour in (("clock_in", 8), ("lunch_out", 12), ("lunch_in", 13), ("clock_out", 17)):
        ledger.record_punch(1, kind, _at(hour))

    with pytest.raises(SequenceViolation) as exc:
        ledger.record_punch(1, "lunch_in", _at(18))
    assert exc.value.rule == SequenceRule.DUPLICATE_KIND


def test_unknown_kind_and_bad_timestamp_are_validation_errors(ledger):
    with pytest.raises(ValidationError):
        ledger.record_punch(1, "coffee_break", _at(10))
    with pytest.raises(ValidationError):
        ledger.record_punch(1, "clock_in", "yesterday-ish")


def test_days_and_subjects_are_independent(ledger):
    ledger.record_punch(1, "clock_in", _at(8))
    ledger.record_punch(2, "clock_in", _at(8))
    ledger.record_punch(1, "clock_in", _at(8, day=date(2026, 3, 3)))

    assert len(ledger.punches_for_day(1, DAY)) == 1
    assert len(ledger.punches_for_day(2, DAY)) == 1


def test_offset_is_dropped_and_wall_clock_kept(ledger):
    punch = ledger.record_punch(1, "clock_in", "2026-03-02T08:00:00-03:00")
    assert punch.timestamp == _at(8)


def test_client_ref_replay_returns_stored_punch(ledger, punches_repo):
    first = ledger.record_punch(1, "clock_in", _at(8), client_ref="dev-1")
    again = ledger.record_punch(1, "clock_in", _at(8), client_ref="dev-1")

    assert again == first
    assert len(punches_repo.rows) == 1


def test_store_conflict_surfaces_as_duplicate_kind(punches_repo, clock):
    class RacingRepo(type(punches_repo)):
        def list_for_day(self, *, subject_id, work_date):
            # Simulates a concurrent writer the read did not see yet.
            return []

    repo = RacingRepo()
    ledger = PunchLedger(repo, clock=clock)
    ledger.record_punch(1, "clock_in", _at(8))

    with pytest.raises(SequenceViolation) as exc:
        ledger.record_punch(1, "clock_in", _at(8, 1))
    assert exc.value.rule == SequenceRule.DUPLICATE_KIND


def test_history_is_newest_first_and_limited(ledger):
    ledger.record_punch(1, "clock_in", _at(8))
    ledger.record_punch(1, "lunch_out", _at(12))
    ledger.record_punch(1, "lunch_in", _at(13))

    rows = ledger.history(1, limit=2)
    assert [p.kind for p in rows] == [PunchKind.LUNCH_IN, PunchKind.LUNCH_OUT]


def test_note_is_trimmed_and_bounded(ledger):
    punch = ledger.record_punch(1, "clock_in", _at(8), note="  traffic  ")
    assert punch.note == "traffic"

    with pytest.raises(ValidationError):
        ledger.record_punch(2, "clock_in", _at(8), note="x" * 501)
