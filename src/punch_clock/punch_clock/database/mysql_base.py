from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateRecordError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def insert_unique(cur, sql: str, params: tuple) -> int:
    """Run an INSERT, mapping unique-key violations to DuplicateRecordError."""

    try:
        cur.execute(sql, params)
    except mysql.connector.IntegrityError as exc:
        if getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY:
            raise DuplicateRecordError(str(exc), constraint=_constraint_name(str(exc))) from exc
        raise
    return int(cur.lastrowid)


def _constraint_name(message: str) -> Optional[str]:
    # MySQL: "Duplicate entry '...' for key 'punches.uq_punch_subject_day_kind'"
    marker = "for key '"
    idx = message.rfind(marker)
    if idx < 0:
        return None
    return message[idx + len(marker):].rstrip("'").split(".")[-1]


def in_clause(values) -> tuple[str, tuple]:
    """Placeholders for ``IN (...)``; callers guarantee at least one value."""
    values = tuple(values)
    return ", ".join(["%s"] * len(values)), values
