from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_instant(value: Union[str, datetime, None], field_name: str = "timestamp") -> datetime:
    """Parse an ISO-8601 instant into a naive wall-clock datetime.

    Offsets are dropped after parsing: the wall-clock reading is kept as is.
    A trailing ``Z`` is accepted.
    """

    if isinstance(value, datetime):
        parsed = value
    elif value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO-8601 string, got {type(value).__name__}")
    else:
        raw = (value or "").strip()
        if not raw:
            raise ValidationError(f"{field_name} is required")
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(f"{field_name} is not a valid ISO-8601 instant: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None)
    return parsed


def format_instant(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) range covering one calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mock it easily.
    """
    return datetime.now()
