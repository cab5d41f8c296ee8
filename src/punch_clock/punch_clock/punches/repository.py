from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PunchKind
from .model import Punch


class PunchRepository(Protocol):
    """Append-only store of punches.

    ``create`` must raise ``DuplicateRecordError`` when (subject, work_date, kind)
    or (subject, client_ref) is already taken; the ledger relies on it when two
    requests race past its own checks.
    """

    def get_by_id(self, punch_id: int) -> Optional[Punch]:
        raise NotImplementedError

    def get_by_client_ref(self, *, subject_id: int, client_ref: str) -> Optional[Punch]:
        raise NotImplementedError

    def list_for_day(self, *, subject_id: int, work_date: date) -> Sequence[Punch]:
        """Punches of one day, ascending by timestamp."""

        raise NotImplementedError

    def list_between(self, *, subject_id: int, start_date: date, end_date: date) -> Sequence[Punch]:
        """Punches with start_date <= work_date <= end_date, ascending by timestamp."""

        raise NotImplementedError

    def list_recent(self, *, subject_id: int, limit: int, work_date: Optional[date] = None) -> Sequence[Punch]:
        """Newest first."""

        raise NotImplementedError

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
        raise NotImplementedError
