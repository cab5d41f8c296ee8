from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from punch_clock.adjustments.model import CorrectionRequest
from punch_clock.container import wire_container
from punch_clock.core.enums import RequestStatus, Role
from punch_clock.core.exceptions import DuplicateRecordError
from punch_clock.punches.model import Punch
from punch_clock.subjects.model import Subject

EMPLOYEE_ID = 1
OTHER_EMPLOYEE_ID = 2
REVIEWER_ID = 9


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeSubjectRepo:
    def __init__(self, subjects):
        self._rows = {s.subject_id: s for s in subjects}

    def get_by_id(self, subject_id):
        return self._rows.get(int(subject_id))

    def get_many(self, subject_ids):
        return {int(sid): self._rows[int(sid)] for sid in subject_ids if int(sid) in self._rows}


class FakePunchRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Punch] = {}

    def get_by_id(self, punch_id):
        return self.rows.get(int(punch_id))

    def get_by_client_ref(self, *, subject_id, client_ref):
        for p in self.rows.values():
            if p.subject_id == int(subject_id) and p.client_ref == client_ref:
                return p
        return None

    def list_for_day(self, *, subject_id, work_date):
        rows = [p for p in self.rows.values() if p.subject_id == int(subject_id) and p.work_date == work_date]
        return sorted(rows, key=lambda p: p.timestamp)

    def list_between(self, *, subject_id, start_date, end_date):
        rows = [
            p for p in self.rows.values()
            if p.subject_id == int(subject_id) and start_date <= p.work_date <= end_date
        ]
        return sorted(rows, key=lambda p: p.timestamp)

    def list_recent(self, *, subject_id, limit, work_date=None):
        rows = [
            p for p in self.rows.values()
            if p.subject_id == int(subject_id) and (work_date is None or p.work_date == work_date)
        ]
        return sorted(rows, key=lambda p: p.timestamp, reverse=True)[: int(limit)]

    def create(self, *, subject_id, kind, timestamp, created_at, note=None, client_ref=None):
        for p in self.rows.values():
            if p.subject_id == int(subject_id) and p.work_date == timestamp.date() and p.kind == kind:
                raise DuplicateRecordError("duplicate kind", constraint="uq_punch_subject_day_kind")
            if client_ref and p.subject_id == int(subject_id) and p.client_ref == client_ref:
                raise DuplicateRecordError("duplicate client_ref", constraint="uq_punch_subject_client_ref")

        pid = self._next_id
        self._next_id += 1
        self.rows[pid] = Punch(
            punch_id=pid,
            subject_id=int(subject_id),
            kind=kind,
            timestamp=timestamp,
            created_at=created_at,
            note=note,
            client_ref=client_ref,
        )
        return pid


class FakeAdjustmentRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, CorrectionRequest] = {}

    def create(self, *, subject_id, punch_id, proposed_timestamp, justification, created_at, client_ref=None):
        for r in self.rows.values():
            if r.punch_id == int(punch_id) and r.is_pending:
                raise DuplicateRecordError("pending exists", constraint="uq_correction_one_pending")
            if client_ref and r.subject_id == int(subject_id) and r.client_ref == client_ref:
                raise DuplicateRecordError("duplicate client_ref", constraint="uq_correction_subject_client_ref")

        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = CorrectionRequest(
            request_id=rid,
            subject_id=int(subject_id),
            punch_id=int(punch_id),
            proposed_timestamp=proposed_timestamp,
            justification=justification,
            status=RequestStatus.PENDING,
            created_at=created_at,
            updated_at=created_at,
            client_ref=client_ref,
        )
        return rid

    def get(self, *, request_id):
        return self.rows.get(int(request_id))

    def get_by_client_ref(self, *, subject_id, client_ref):
        for r in self.rows.values():
            if r.subject_id == int(subject_id) and r.client_ref == client_ref:
                return r
        return None

    def find_pending_for_punch(self, *, punch_id):
        for r in self.rows.values():
            if r.punch_id == int(punch_id) and r.is_pending:
                return r
        return None

    def list_for_subject(self, *, subject_id, limit=200):
        rows = [r for r in self.rows.values() if r.subject_id == int(subject_id)]
        return sorted(rows, key=lambda r: (r.created_at, r.request_id), reverse=True)[: int(limit)]

    def list_for_punches(self, *, punch_ids):
        ids = {int(pid) for pid in punch_ids}
        return [r for r in self.rows.values() if r.punch_id in ids]

    def list_by_status(self, *, status=None, limit=500):
        rows = [r for r in self.rows.values() if status is None or r.status == status]
        return sorted(rows, key=lambda r: (r.created_at, r.request_id))[: int(limit)]

    def decide(self, *, request_id, status, decided_at, decided_by=None, reviewer_response=None):
        req = self.rows.get(int(request_id))
        if not req or not req.is_pending:
            return False
        self.rows[req.request_id] = replace(
            req,
            status=status,
            updated_at=decided_at,
            decided_by=decided_by,
            reviewer_response=reviewer_response,
        )
        return True

    def delete_pending(self, *, request_id):
        req = self.rows.get(int(request_id))
        if not req or not req.is_pending:
            return False
        del self.rows[req.request_id]
        return True


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 12, 0, 0)


@pytest.fixture
def clock(fixed_now):
    return FakeClock(fixed_now)


@pytest.fixture
def subjects_repo():
    return FakeSubjectRepo(
        [
            Subject(EMPLOYEE_ID, "Ana Souza", "Head Office"),
            Subject(OTHER_EMPLOYEE_ID, "Bruno Lima", "Head Office"),
            Subject(REVIEWER_ID, "Reviewer Demo", "Head Office", role=Role.REVIEWER),
            Subject(50, "Former Employee", "Head Office", is_active=False),
        ]
    )


@pytest.fixture
def punches_repo():
    return FakePunchRepo()


@pytest.fixture
def adjustments_repo():
    return FakeAdjustmentRepo()


@pytest.fixture
def container(subjects_repo, punches_repo, adjustments_repo, clock):
    return wire_container(
        subjects_repo=subjects_repo,
        punches_repo=punches_repo,
        adjustments_repo=adjustments_repo,
        secret_key="test-secret",
        clock=clock,
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from punch_clock.main import create_app

    return create_app(container=container)


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def headers_for(container):
    def _headers(subject_id: int, role: Role = Role.EMPLOYEE) -> dict:
        return {"Authorization": f"Bearer {container.identity.issue(subject_id, role)}"}

    return _headers


@pytest.fixture
def employee_headers(headers_for):
    return headers_for(EMPLOYEE_ID)


@pytest.fixture
def reviewer_headers(headers_for):
    return headers_for(REVIEWER_ID, Role.REVIEWER)
