from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import PunchKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, insert_unique
from .model import Punch
from .repository import PunchRepository

_COLUMNS = "punch_id, subject_id, kind, punched_at, note, client_ref, created_at"


def _to_punch(r: dict) -> Punch:
    return Punch(
        punch_id=int(r["punch_id"]),
        subject_id=int(r["subject_id"]),
        kind=PunchKind(r["kind"]),
        timestamp=r["punched_at"],
        created_at=r["created_at"],
        note=r.get("note"),
        client_ref=r.get("client_ref"),
    )


class MySQLPunchRepository(PunchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, punch_id: int) -> Optional[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM punches WHERE punch_id=%s", (int(punch_id),))
            r = fetchone(cur)
            return _to_punch(r) if r else None

    def get_by_client_ref(self, *, subject_id: int, client_ref: str) -> Optional[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM punches WHERE subject_id=%s AND client_ref=%s",
                (int(subject_id), client_ref),
            )
            r = fetchone(cur)
            return _to_punch(r) if r else None

    def list_for_day(self, *, subject_id: int, work_date: date) -> Sequence[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punches
                WHERE subject_id=%s AND work_date=%s
                ORDER BY punched_at ASC
                """,
                (int(subject_id), work_date),
            )
            return [_to_punch(r) for r in fetchall(cur)]

    def list_between(self, *, subject_id: int, start_date: date, end_date: date) -> Sequence[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punches
                WHERE subject_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY punched_at ASC
                """,
                (int(subject_id), start_date, end_date),
            )
            return [_to_punch(r) for r in fetchall(cur)]

    def list_recent(self, *, subject_id: int, limit: int, work_date: Optional[date] = None) -> Sequence[Punch]:
        clauses = ["subject_id=%s"]
        params: list[object] = [int(subject_id)]
        if work_date is not None:
            clauses.append("work_date=%s")
            params.append(work_date)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punches
                WHERE {where}
                ORDER BY punched_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_punch(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        subject_id: int,
        kind: PunchKind,
        timestamp: datetime,
        created_at: datetime,
        note: Optional[str] = None,
        client_ref: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_unique(
                cur,
                """
                INSERT INTO punches(subject_id, kind, work_date, punched_at, note, client_ref, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(subject_id), kind.value, timestamp.date(), timestamp, note, client_ref, created_at),
            )
