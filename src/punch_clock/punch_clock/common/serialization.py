"""JSON shapes shared by the HTTP API and the device client."""

from __future__ import annotations

from typing import Any, Optional

from ..adjustments.model import CorrectionRequest, EffectivePunch, ReviewItem
from ..core.enums import PunchKind, RequestStatus
from ..hours.engine import DailySummary
from ..punches.model import Punch
from .datetime_utils import format_instant, parse_instant


def _opt_instant(value: Optional[str]):
    return parse_instant(value) if value else None


def punch_to_dict(p: Punch) -> dict[str, Any]:
    return {
        "punch_id": p.punch_id,
        "subject_id": p.subject_id,
        "kind": p.kind.value,
        "timestamp": format_instant(p.timestamp),
        "note": p.note,
        "created_at": format_instant(p.created_at),
        "client_ref": p.client_ref,
    }


def punch_from_dict(d: dict) -> Punch:
    # Projected payloads carry the recorded time in original_timestamp.
    return Punch(
        punch_id=int(d["punch_id"]),
        subject_id=int(d["subject_id"]),
        kind=PunchKind(d["kind"]),
        timestamp=parse_instant(d.get("original_timestamp") or d["timestamp"]),
        created_at=_opt_instant(d.get("created_at")) or parse_instant(d["timestamp"]),
        note=d.get("note"),
        client_ref=d.get("client_ref"),
    )


def request_to_dict(r: CorrectionRequest) -> dict[str, Any]:
    return {
        "request_id": r.request_id,
        "subject_id": r.subject_id,
        "punch_id": r.punch_id,
        "proposed_timestamp": format_instant(r.proposed_timestamp),
        "justification": r.justification,
        "status": r.status.value,
        "reviewer_response": r.reviewer_response,
        "decided_by": r.decided_by,
        "client_ref": r.client_ref,
        "created_at": format_instant(r.created_at),
        "updated_at": format_instant(r.updated_at),
    }


def request_from_dict(d: dict) -> CorrectionRequest:
    return CorrectionRequest(
        request_id=int(d["request_id"]),
        subject_id=int(d["subject_id"]),
        punch_id=int(d["punch_id"]),
        proposed_timestamp=parse_instant(d["proposed_timestamp"]),
        justification=d["justification"],
        status=RequestStatus(d["status"]),
        created_at=parse_instant(d["created_at"]),
        updated_at=parse_instant(d["updated_at"]),
        reviewer_response=d.get("reviewer_response"),
        decided_by=d.get("decided_by"),
        client_ref=d.get("client_ref"),
    )


def effective_to_dict(p: EffectivePunch) -> dict[str, Any]:
    return {
        "punch_id": p.punch_id,
        "subject_id": p.subject_id,
        "kind": p.kind.value,
        "timestamp": format_instant(p.timestamp),
        "note": p.note,
        "created_at": format_instant(p.created_at),
        "adjusted": p.adjusted,
        "original_timestamp": format_instant(p.original_timestamp),
        "correction_id": p.correction_id,
        "correction_status": p.correction_status.value if p.correction_status else None,
        "reviewer_response": p.reviewer_response,
        "synced": p.synced,
        "local_id": p.local_id,
    }


def effective_from_dict(d: dict) -> EffectivePunch:
    status = d.get("correction_status")
    return EffectivePunch(
        punch_id=int(d["punch_id"]) if d.get("punch_id") is not None else None,
        subject_id=int(d["subject_id"]),
        kind=PunchKind(d["kind"]),
        timestamp=parse_instant(d["timestamp"]),
        note=d.get("note"),
        created_at=_opt_instant(d.get("created_at")),
        adjusted=bool(d.get("adjusted", False)),
        original_timestamp=_opt_instant(d.get("original_timestamp")),
        correction_id=d.get("correction_id"),
        correction_status=RequestStatus(status) if status else None,
        reviewer_response=d.get("reviewer_response"),
        synced=bool(d.get("synced", True)),
        local_id=d.get("local_id"),
    )


def summary_to_dict(s: DailySummary) -> dict[str, Any]:
    return {
        "day": s.day.isoformat(),
        "worked_minutes": s.worked_minutes,
        "worked_hours": s.worked_hours,
        "complete_day": s.complete_day,
        "next_expected_kind": s.next_expected_kind.value if s.next_expected_kind else None,
    }


def review_item_to_dict(item: ReviewItem) -> dict[str, Any]:
    data = request_to_dict(item.request)
    data["subject_name"] = item.subject_name
    data["punch"] = punch_to_dict(item.punch) if item.punch else None
    return data
