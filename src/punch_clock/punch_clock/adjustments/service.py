from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import now_local, parse_instant
from ..common.validators import optional_text, parse_request_status, require_max_length, require_min_length
from ..core.constants import (
    DEFAULT_REVIEW_LIMIT,
    MAX_JUSTIFICATION_LENGTH,
    MAX_REVIEWER_RESPONSE_LENGTH,
    MIN_JUSTIFICATION_LENGTH,
)
from ..core.enums import DECISIONS, RequestStatus
from ..core.exceptions import (
    AuthorizationError,
    DuplicateRecordError,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)
from ..core.logging_config import get_logger
from ..punches.model import Punch
from ..punches.repository import PunchRepository
from ..subjects.repository import SubjectRepository
from .model import CorrectionRequest, EffectivePunch, ReviewItem
from .projection import project_effective
from .repository import AdjustmentRepository

logger = get_logger(__name__)


class AdjustmentWorkflow:
    """Use case: submit, decide and withdraw correction requests.

    State machine per request: PENDING -> APPROVED | REJECTED, decided once.
    """

    def __init__(
        self,
        adjustments: AdjustmentRepository,
        punches: Optional[PunchRepository] = None,
        subjects: Optional[SubjectRepository] = None,
        *,
        min_justification: int = MIN_JUSTIFICATION_LENGTH,
        clock: Callable[[], datetime] = now_local,
    ):
        self._adjustments = adjustments
        self._punches = punches
        self._subjects = subjects
        self._min_justification = int(min_justification)
        self._clock = clock

    def submit(
        self,
        *,
        subject_id: int,
        punch_id: int,
        proposed_timestamp,
        justification: str,
        client_ref: Optional[str] = None,
    ) -> CorrectionRequest:
        justification = require_min_length(justification, "justification", self._min_justification)
        require_max_length(justification, "justification", MAX_JUSTIFICATION_LENGTH)
        proposed = parse_instant(proposed_timestamp, "proposed_timestamp")
        try:
            punch_id = int(punch_id)
        except (TypeError, ValueError):
            raise ValidationError(f"punch_id must be an integer: {punch_id!r}")
        client_ref = optional_text(client_ref, "client_ref")

        if client_ref:
            replayed = self._adjustments.get_by_client_ref(subject_id=int(subject_id), client_ref=client_ref)
            if replayed:
                logger.info("Replayed correction delivery subject=%s client_ref=%s", subject_id, client_ref)
                return replayed

        if self._adjustments.find_pending_for_punch(punch_id=punch_id):
            raise InvalidStateTransition(f"Punch {punch_id} already has a correction awaiting review")

        try:
            request_id = self._adjustments.create(
                subject_id=int(subject_id),
                punch_id=punch_id,
                proposed_timestamp=proposed,
                justification=justification,
                created_at=self._clock(),
                client_ref=client_ref,
            )
        except DuplicateRecordError:
            if client_ref:
                replayed = self._adjustments.get_by_client_ref(subject_id=int(subject_id), client_ref=client_ref)
                if replayed:
                    return replayed
            raise InvalidStateTransition(f"Punch {punch_id} already has a correction awaiting review")

        req = self._require(request_id)
        logger.info("Correction %s submitted by subject %s for punch %s", req.request_id, subject_id, punch_id)
        return req

    def decide(
        self,
        *,
        request_id: int,
        decision,
        reviewer_response: Optional[str] = None,
        reviewer_id: Optional[int] = None,
    ) -> CorrectionRequest:
        status = parse_request_status(decision)
        if status not in DECISIONS:
            raise ValidationError("decision must be APPROVED or REJECTED")
        response = require_max_length(optional_text(reviewer_response, "reviewer_response"), "reviewer_response", MAX_REVIEWER_RESPONSE_LENGTH)

        req = self._require(request_id)
        if not req.is_pending:
            raise InvalidStateTransition(f"Request {req.request_id} was already {req.status.value}")

        decided = self._adjustments.decide(
            request_id=req.request_id,
            status=status,
            decided_at=self._clock(),
            decided_by=reviewer_id,
            reviewer_response=response,
        )
        if not decided:
            # Another reviewer decided in between.
            raise InvalidStateTransition(f"Request {req.request_id} is no longer pending")

        logger.info("Correction %s %s by reviewer %s", req.request_id, status.value, reviewer_id)
        return self._require(req.request_id)

    def withdraw(self, *, subject_id: int, request_id: int) -> None:
        req = self._require(request_id)
        if req.subject_id != int(subject_id):
            raise AuthorizationError("Only the requester can withdraw a correction")
        if not req.is_pending:
            raise InvalidStateTransition(f"Request {req.request_id} was already {req.status.value}")
        if not self._adjustments.delete_pending(request_id=req.request_id):
            raise InvalidStateTransition(f"Request {req.request_id} is no longer pending")
        logger.info("Correction %s withdrawn by subject %s", req.request_id, subject_id)

    def get(self, request_id: int) -> CorrectionRequest:
        return self._require(request_id)

    def list_for_subject(self, subject_id: int, *, limit: int = 200) -> list[CorrectionRequest]:
        return list(self._adjustments.list_for_subject(subject_id=int(subject_id), limit=int(limit)))

    def list_for_review(
        self,
        *,
        status: Optional[RequestStatus] = RequestStatus.PENDING,
        limit: int = DEFAULT_REVIEW_LIMIT,
    ) -> list[ReviewItem]:
        requests = list(self._adjustments.list_by_status(status=status, limit=int(limit)))
        names = {}
        if self._subjects and requests:
            names = {sid: s.display_name for sid, s in self._subjects.get_many({r.subject_id for r in requests}).items()}

        items = []
        for r in requests:
            punch = self._punches.get_by_id(r.punch_id) if self._punches else None
            if self._punches and punch is None:
                logger.info("Correction %s references missing punch %s", r.request_id, r.punch_id)
            items.append(ReviewItem(request=r, subject_name=names.get(r.subject_id), punch=punch))
        return items

    def effective_timeline(self, subject_id: int, punches: Iterable[Punch]) -> list[EffectivePunch]:
        punches = list(punches)
        ids = {p.punch_id for p in punches}
        requests = self._adjustments.list_for_punches(punch_ids=ids) if ids else []
        # Only the owner's own requests may move their punches.
        return project_effective(punches, [r for r in requests if r.subject_id == int(subject_id)])

    def _require(self, request_id) -> CorrectionRequest:
        try:
            rid = int(request_id)
        except (TypeError, ValueError):
            raise NotFoundError(f"Correction request {request_id!r} not found")
        req = self._adjustments.get(request_id=rid)
        if not req:
            raise NotFoundError(f"Correction request {rid} not found")
        return req
