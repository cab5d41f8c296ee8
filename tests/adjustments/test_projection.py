from __future__ import annotations

import logging
from datetime import datetime

from punch_clock.adjustments.model import CorrectionRequest
from punch_clock.adjustments.projection import project_effective
from punch_clock.core.enums import PunchKind, RequestStatus
from punch_clock.hours.engine import compute_daily_minutes
from punch_clock.punches.model import Punch


def _ts(hh: int, mm: int = 0) -> datetime:
    return datetime(2026, 3, 2, hh, mm)


def _punch(pid: int, kind: PunchKind, hh: int, mm: int = 0) -> Punch:
    return Punch(punch_id=pid, subject_id=1, kind=kind, timestamp=_ts(hh, mm), created_at=_ts(hh, mm))


def _request(rid: int, punch_id: int, status: RequestStatus, proposed: datetime, *, created_hour: int = 14, response=None):
    return CorrectionRequest(
        request_id=rid,
        subject_id=1,
        punch_id=punch_id,
        proposed_timestamp=proposed,
        justification="Forgot to punch at the gate",
        status=status,
        created_at=_ts(created_hour),
        updated_at=_ts(created_hour, 30),
        reviewer_response=response,
    )


def _day():
    return [
        _punch(1, PunchKind.CLOCK_IN, 8),
        _punch(2, PunchKind.LUNCH_OUT, 12),
        _punch(3, PunchKind.LUNCH_IN, 13),
        _punch(4, PunchKind.CLOCK_OUT, 17),
    ]


def test_approved_correction_moves_clock_in_to_0745():
    requests = [_request(10, 1, RequestStatus.APPROVED, _ts(7, 45), response="ok")]

    effective = project_effective(_day(), requests)

    first = effective[0]
    assert first.timestamp == _ts(7, 45)
    assert first.original_timestamp == _ts(8)
    assert first.adjusted is True
    assert first.correction_id == 10
    assert first.correction_status == RequestStatus.APPROVED
    assert first.reviewer_response == "ok"
    assert compute_daily_minutes(effective) == 495


def test_pending_and_rejected_only_annotate():
    requests = [
        _request(10, 1, RequestStatus.PENDING, _ts(7, 45)),
        _request(11, 4, RequestStatus.REJECTED, _ts(18), response="no evidence"),
    ]

    effective = project_effective(_day(), requests)

    assert effective[0].timestamp == _ts(8)
    assert effective[0].adjusted is False
    assert effective[0].correction_status == RequestStatus.PENDING
    assert effective[3].timestamp == _ts(17)
    assert effective[3].reviewer_response == "no evidence"
    assert compute_daily_minutes(effective) == 480


def test_approved_time_survives_a_later_rejection():
    requests = [
        _request(10, 1, RequestStatus.APPROVED, _ts(7, 45), created_hour=9),
        _request(11, 1, RequestStatus.REJECTED, _ts(7, 0), created_hour=15, response="no"),
    ]

    effective = project_effective(_day(), requests)

    assert effective[0].timestamp == _ts(7, 45)
    assert effective[0].adjusted is True
    assert effective[0].correction_id == 11
    assert effective[0].correction_status == RequestStatus.REJECTED
    assert effective[0].reviewer_response == "no"


def test_new_request_after_approval_shows_as_pending():
    requests = [
        _request(10, 1, RequestStatus.APPROVED, _ts(7, 45), created_hour=9, response="ok"),
        _request(11, 1, RequestStatus.PENDING, _ts(7, 30), created_hour=15),
    ]

    first = project_effective(_day(), requests)[0]

    assert first.timestamp == _ts(7, 45)
    assert first.original_timestamp == _ts(8)
    assert first.correction_id == 11
    assert first.correction_status == RequestStatus.PENDING
    assert first.reviewer_response is None


def test_input_order_is_kept_and_originals_untouched():
    day = _day()
    effective = project_effective(day, [_request(10, 2, RequestStatus.APPROVED, _ts(12, 30))])

    assert [p.punch_id for p in effective] == [1, 2, 3, 4]
    assert day[1].timestamp == _ts(12)


def test_dangling_reference_is_logged_and_ignored(caplog):
    with caplog.at_level(logging.INFO, logger="punch_clock"):
        effective = project_effective(_day(), [_request(10, 999, RequestStatus.APPROVED, _ts(7))])

    assert [p.timestamp for p in effective] == [p.timestamp for p in _day()]
    assert any("outside this timeline" in r.getMessage() for r in caplog.records)
