from __future__ import annotations

from typing import Iterable, Mapping, Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Subject
from .repository import SubjectRepository

_COLUMNS = "subject_id, display_name, organization, role, is_active"


def _to_subject(r: dict) -> Subject:
    return Subject(
        subject_id=int(r["subject_id"]),
        display_name=r["display_name"],
        organization=r.get("organization"),
        role=Role(r.get("role") or Role.EMPLOYEE.value),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLSubjectRepository(SubjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM subjects WHERE subject_id=%s", (int(subject_id),))
            r = fetchone(cur)
            return _to_subject(r) if r else None

    def get_many(self, subject_ids: Iterable[int]) -> Mapping[int, Subject]:
        placeholders, params = in_clause(int(sid) for sid in subject_ids)
        if not params:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM subjects WHERE subject_id IN ({placeholders})", params)
            return {s.subject_id: s for s in (_to_subject(r) for r in fetchall(cur))}
