from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import CorrectionRequest


class AdjustmentRepository(Protocol):
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
        """Insert a PENDING request.

        Raises ``DuplicateRecordError`` when the punch already has a pending
        request or the client_ref was used before.
        """

        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def get_by_client_ref(self, *, subject_id: int, client_ref: str) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def find_pending_for_punch(self, *, punch_id: int) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def list_for_subject(self, *, subject_id: int, limit: int = 200) -> Sequence[CorrectionRequest]:
        """Newest first."""

        raise NotImplementedError

    def list_for_punches(self, *, punch_ids: Iterable[int]) -> Sequence[CorrectionRequest]:
        raise NotImplementedError

    def list_by_status(self, *, status: Optional[RequestStatus] = None, limit: int = 500) -> Sequence[CorrectionRequest]:
        """Oldest first, so reviewers work the queue in arrival order."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_at: datetime,
        decided_by: Optional[int] = None,
        reviewer_response: Optional[str] = None,
    ) -> bool:
        """Conditional update: applies only while the request is PENDING."""

        raise NotImplementedError

    def delete_pending(self, *, request_id: int) -> bool:
        raise NotImplementedError
