from __future__ import annotations

import re
from contextlib import closing
from pathlib import Path
from typing import Iterator

from ..core.logging_config import get_logger
from .connection import DatabaseConnection, DBConfig

logger = get_logger(__name__)

SCHEMA_TABLES = ("subjects", "punches", "correction_requests")

DEMO_SUBJECTS = (
    # (display_name, organization, role)
    ("Reviewer Demo", "Head Office", "reviewer"),
    ("Ana Souza", "Head Office", "employee"),
    ("Bruno Lima", "Head Office", "employee"),
)

_CREATE_DATABASE = re.compile(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$")
_USE_DATABASE = re.compile(r"(?im)^\s*USE\b.*?;\s*$")
_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")


def _strip_create_db_and_use(sql: str) -> str:
    # The target database comes from DB_CONFIG, not from the file.
    return _USE_DATABASE.sub("", _CREATE_DATABASE.sub("", sql))


def _strip_comments(sql: str) -> str:
    return _LINE_COMMENT.sub("", sql)


def _iter_sql_statements(sql: str) -> Iterator[str]:
    """Split on ';' outside of quoted literals."""

    start = 0
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1
        i += 1

    tail = sql[start:].strip()
    if tail:
        yield tail


def _open(db_config: dict, *, with_database: bool = True):
    return closing(DatabaseConnection(DBConfig.from_dict(db_config)).connect(with_database=with_database))


def ensure_database_exists(db_config: dict) -> None:
    name = DBConfig.from_dict(db_config).database
    with _open(db_config, with_database=False) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)

    sql = _strip_comments(_strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8")))
    statements = list(_iter_sql_statements(sql))
    with _open(db_config) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    logger.info("Applied %s schema statements from %s", len(statements), schema_path)


def ensure_demo_subjects(db_config: dict) -> list[int]:
    """Insert the demo subjects that are missing; returns all demo ids."""

    ids: list[int] = []
    with _open(db_config) as conn:
        cur = conn.cursor(dictionary=True)
        for display_name, organization, role in DEMO_SUBJECTS:
            cur.execute("SELECT subject_id FROM subjects WHERE display_name=%s", (display_name,))
            row = cur.fetchone()
            if row is None:
                cur.execute(
                    "INSERT INTO subjects (display_name, organization, role) VALUES (%s, %s, %s)",
                    (display_name, organization, role),
                )
                ids.append(int(cur.lastrowid))
                continue
            cur.execute(
                "UPDATE subjects SET organization=%s, role=%s, is_active=1 WHERE subject_id=%s",
                (organization, role, row["subject_id"]),
            )
            ids.append(int(row["subject_id"]))
        conn.commit()
    logger.info("Demo subjects ready: %s", ids)
    return ids


def list_tables(db_config: dict) -> list[str]:
    with _open(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
