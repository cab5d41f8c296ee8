from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local, parse_instant
from ..common.validators import optional_text, parse_punch_kind, require_max_length
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_NOTE_LENGTH
from ..core.enums import PunchKind, SequenceRule
from ..core.exceptions import DuplicateRecordError, NotFoundError, SequenceViolation
from ..core.logging_config import get_logger
from ..hours.engine import next_expected_kind
from .model import Punch
from .repository import PunchRepository

logger = get_logger(__name__)


class PunchLedger:
    """Use case: record punches in the fixed daily order and read them back."""

    def __init__(self, punches: PunchRepository, *, clock: Callable[[], datetime] = now_local):
        self._punches = punches
        self._clock = clock

    def record_punch(
        self,
        subject_id: int,
        kind,
        timestamp,
        note: Optional[str] = None,
        *,
        client_ref: Optional[str] = None,
    ) -> Punch:
        kind = parse_punch_kind(kind)
        timestamp = parse_instant(timestamp)
        note = require_max_length(optional_text(note, "note"), "note", MAX_NOTE_LENGTH)
        client_ref = optional_text(client_ref, "client_ref")

        if client_ref:
            replayed = self._punches.get_by_client_ref(subject_id=int(subject_id), client_ref=client_ref)
            if replayed:
                logger.info("Replayed punch delivery subject=%s client_ref=%s -> punch %s", subject_id, client_ref, replayed.punch_id)
                return replayed

        today = self._punches.list_for_day(subject_id=int(subject_id), work_date=timestamp.date())
        self._check_admissible(today, kind)

        try:
            punch_id = self._punches.create(
                subject_id=int(subject_id),
                kind=kind,
                timestamp=timestamp,
                created_at=self._clock(),
                note=note,
                client_ref=client_ref,
            )
        except DuplicateRecordError:
            # Lost a race against a concurrent insert; the store is authoritative.
            if client_ref:
                replayed = self._punches.get_by_client_ref(subject_id=int(subject_id), client_ref=client_ref)
                if replayed:
                    return replayed
            logger.warning("Concurrent duplicate punch subject=%s kind=%s day=%s", subject_id, kind.value, timestamp.date())
            raise SequenceViolation(
                f"{kind.value} was already recorded on {timestamp.date().isoformat()}",
                rule=SequenceRule.DUPLICATE_KIND,
            )

        punch = self._punches.get_by_id(punch_id)
        if not punch:
            raise NotFoundError(f"Punch {punch_id} vanished after insert")
        logger.info("Recorded %s for subject %s at %s", kind.value, subject_id, timestamp.isoformat())
        return punch

    @staticmethod
    def _check_admissible(today: Sequence[Punch], kind: PunchKind) -> None:
        recorded = {p.kind for p in today}
        if kind in recorded:
            logger.info("Rejected duplicate %s", kind.value)
            raise SequenceViolation(f"{kind.value} was already recorded today", rule=SequenceRule.DUPLICATE_KIND)

        expected = next_expected_kind(today)
        if kind != expected:
            logger.info("Rejected %s out of sequence (expected %s)", kind.value, expected.value if expected else None)
            raise SequenceViolation(
                f"Out of sequence: expected {expected.value if expected else 'nothing'}, got {kind.value}",
                rule=SequenceRule.OUT_OF_SEQUENCE,
                expected_kind=expected,
            )

    def punches_for_day(self, subject_id: int, day: date) -> list[Punch]:
        rows = self._punches.list_for_day(subject_id=int(subject_id), work_date=day)
        return sorted(rows, key=lambda p: p.timestamp)

    def punches_between(self, subject_id: int, start: date, end: date) -> list[Punch]:
        rows = self._punches.list_between(subject_id=int(subject_id), start_date=start, end_date=end)
        return sorted(rows, key=lambda p: p.timestamp)

    def history(self, subject_id: int, *, day: Optional[date] = None, limit: int = DEFAULT_HISTORY_LIMIT) -> list[Punch]:
        rows = self._punches.list_recent(subject_id=int(subject_id), limit=int(limit), work_date=day)
        return sorted(rows, key=lambda p: p.timestamp, reverse=True)

    def get_punch(self, punch_id: int) -> Optional[Punch]:
        return self._punches.get_by_id(int(punch_id))
