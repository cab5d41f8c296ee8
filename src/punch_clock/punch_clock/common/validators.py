from __future__ import annotations

from typing import Optional

from ..core.enums import PunchKind, RequestStatus
from ..core.exceptions import ValidationError


def _text(value, field_name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value


def require_non_empty(value: str, field_name: str) -> str:
    value = _text(value, field_name)
    if not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    """Trimmed length check; returns the trimmed value."""
    trimmed = _text(value, field_name).strip()
    if len(trimmed) < min_len:
        raise ValidationError(f"{field_name} must have at least {min_len} characters")
    return trimmed


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must have at most {max_len} characters")
    return value


def optional_text(value: Optional[str], field_name: str = "value") -> Optional[str]:
    return _text(value, field_name).strip() or None


def parse_punch_kind(value) -> PunchKind:
    if isinstance(value, PunchKind):
        return value
    try:
        return PunchKind(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown punch kind: {value!r}")


def parse_request_status(value) -> RequestStatus:
    if isinstance(value, RequestStatus):
        return value
    try:
        return RequestStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown request status: {value!r}")


def parse_limit(value, *, default: int, maximum: int) -> int:
    if value in (None, ""):
        return default
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"limit must be an integer: {value!r}")
    if limit <= 0:
        raise ValidationError("limit must be positive")
    return min(limit, maximum)
