from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import PunchKind


@dataclass(frozen=True)
class Punch:
    """Domain entity: one clock event as recorded by the ledger.

    Never mutated after insert; corrections are layered on top at read time.
    """

    punch_id: int
    subject_id: int
    kind: PunchKind
    timestamp: datetime
    created_at: datetime
    note: Optional[str] = None
    client_ref: Optional[str] = None

    @property
    def work_date(self) -> date:
        return self.timestamp.date()
