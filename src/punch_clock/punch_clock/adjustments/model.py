from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PunchKind, RequestStatus
from ..punches.model import Punch


@dataclass(frozen=True)
class CorrectionRequest:
    """Domain entity: a proposed new timestamp for one punch."""

    request_id: int
    subject_id: int
    punch_id: int
    proposed_timestamp: datetime
    justification: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    reviewer_response: Optional[str] = None
    decided_by: Optional[int] = None
    client_ref: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class EffectivePunch:
    """Read-model: a punch as consumers should see it.

    ``timestamp`` is the approved correction's time when ``adjusted``; the
    recorded time stays in ``original_timestamp``. Device-side entries that
    have not reached the server carry ``synced=False`` and a ``local_id``.
    """

    punch_id: Optional[int]
    subject_id: int
    kind: PunchKind
    timestamp: datetime
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    adjusted: bool = False
    original_timestamp: Optional[datetime] = None
    correction_id: Optional[int] = None
    correction_status: Optional[RequestStatus] = None
    reviewer_response: Optional[str] = None
    synced: bool = True
    local_id: Optional[str] = None

    @classmethod
    def from_punch(cls, punch: Punch) -> "EffectivePunch":
        return cls(
            punch_id=punch.punch_id,
            subject_id=punch.subject_id,
            kind=punch.kind,
            timestamp=punch.timestamp,
            note=punch.note,
            created_at=punch.created_at,
        )

    @property
    def recorded_timestamp(self) -> datetime:
        return self.original_timestamp or self.timestamp


@dataclass(frozen=True)
class ReviewItem:
    """Read-model for the reviewer queue.

    ``punch`` is resolved lazily and is ``None`` for a dangling reference.
    """

    request: CorrectionRequest
    subject_name: Optional[str]
    punch: Optional[Punch]
