from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, insert_unique
from .model import CorrectionRequest
from .repository import AdjustmentRepository

_COLUMNS = (
    "request_id, subject_id, punch_id, proposed_at, justification, status, "
    "reviewer_response, decided_by, client_ref, created_at, updated_at"
)


def _to_request(r: dict) -> CorrectionRequest:
    return CorrectionRequest(
        request_id=int(r["request_id"]),
        subject_id=int(r["subject_id"]),
        punch_id=int(r["punch_id"]),
        proposed_timestamp=r["proposed_at"],
        justification=r["justification"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        reviewer_response=r.get("reviewer_response"),
        decided_by=int(r["decided_by"]) if r.get("decided_by") is not None else None,
        client_ref=r.get("client_ref"),
    )


class MySQLAdjustmentRepository(AdjustmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        subject_id: int,
        punch_id: int,
        proposed_timestamp: datetime,
        justification: str,
        created_at: datetime,
        client_ref: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_unique(
                cur,
                """
                INSERT INTO correction_requests(
                    subject_id, punch_id, proposed_at, justification, status, client_ref, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(subject_id),
                    int(punch_id),
                    proposed_timestamp,
                    justification,
                    RequestStatus.PENDING.value,
                    client_ref,
                    created_at,
                    created_at,
                ),
            )

    def get(self, *, request_id: int) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM correction_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def get_by_client_ref(self, *, subject_id: int, client_ref: str) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM correction_requests WHERE subject_id=%s AND client_ref=%s",
                (int(subject_id), client_ref),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def find_pending_for_punch(self, *, punch_id: int) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM correction_requests WHERE punch_id=%s AND status=%s LIMIT 1",
                (int(punch_id), RequestStatus.PENDING.value),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_for_subject(self, *, subject_id: int, limit: int = 200) -> Sequence[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM correction_requests
                WHERE subject_id=%s
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s
                """,
                (int(subject_id), int(limit)),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_for_punches(self, *, punch_ids: Iterable[int]) -> Sequence[CorrectionRequest]:
        placeholders, params = in_clause(int(pid) for pid in punch_ids)
        if not params:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM correction_requests WHERE punch_id IN ({placeholders})",
                params,
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_by_status(self, *, status: Optional[RequestStatus] = None, limit: int = 500) -> Sequence[CorrectionRequest]:
        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM correction_requests
                WHERE {where}
                ORDER BY created_at ASC, request_id ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_at: datetime,
        decided_by: Optional[int] = None,
        reviewer_response: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE correction_requests
                SET status=%s, reviewer_response=%s, decided_by=%s, updated_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    reviewer_response,
                    decided_by,
                    decided_at,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete_pending(self, *, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM correction_requests WHERE request_id=%s AND status=%s",
                (int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
