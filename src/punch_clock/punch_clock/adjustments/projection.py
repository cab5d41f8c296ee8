"""Effective timeline: approved corrections laid over recorded punches.

Correction requests reference punches by bare id and are never validated on
submit, so resolution happens here. A request whose punch is not in the input
simply changes nothing.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional, Sequence

from ..core.enums import RequestStatus
from ..core.logging_config import get_logger
from ..punches.model import Punch
from .model import CorrectionRequest, EffectivePunch

logger = get_logger(__name__)


def _pick(requests: Sequence[CorrectionRequest]) -> tuple[Optional[CorrectionRequest], Optional[CorrectionRequest]]:
    """(approved, latest) for the requests of one punch."""
    approved = [r for r in requests if r.status == RequestStatus.APPROVED]
    chosen_approved = max(approved, key=lambda r: (r.updated_at, r.request_id)) if approved else None
    latest = max(requests, key=lambda r: (r.created_at, r.request_id)) if requests else None
    return chosen_approved, latest


def project_effective(
    punches: Iterable[Punch],
    requests: Iterable[CorrectionRequest],
) -> list[EffectivePunch]:
    """One EffectivePunch per punch, in input order.

    An approved request substitutes its proposed timestamp and keeps the
    recorded one in ``original_timestamp``. The annotation
    (``correction_id``, ``correction_status``, ``reviewer_response``) always
    comes from the latest request, so a new request filed after an approval
    shows as awaiting review.
    """

    punches = list(punches)
    by_punch: dict[int, list[CorrectionRequest]] = {}
    for r in requests:
        by_punch.setdefault(int(r.punch_id), []).append(r)

    known_ids = {p.punch_id for p in punches}
    dangling = [pid for pid in by_punch if pid not in known_ids]
    if dangling:
        logger.info("Correction requests reference punches outside this timeline: %s", sorted(dangling))

    out: list[EffectivePunch] = []
    for punch in punches:
        base = EffectivePunch.from_punch(punch)
        approved, latest = _pick(by_punch.get(punch.punch_id, []))
        if latest is None:
            out.append(base)
            continue

        effective = replace(
            base,
            correction_id=latest.request_id,
            correction_status=latest.status,
            reviewer_response=latest.reviewer_response,
        )
        if approved is not None:
            effective = replace(
                effective,
                timestamp=approved.proposed_timestamp,
                original_timestamp=punch.timestamp,
                adjusted=True,
            )
        out.append(effective)
    return out
