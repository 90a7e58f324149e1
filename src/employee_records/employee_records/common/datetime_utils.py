from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_datetime(value: Optional[str], field_name: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (a trailing 'Z' is accepted)."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO-8601 date")
    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 date")
    # Stored values are naive UTC
    if parsed.tzinfo is not None:
        parsed = (parsed - parsed.utcoffset()).replace(tzinfo=None)
    return parsed


def parse_date_field(value: Optional[str], field_name: str) -> Optional[date]:
    parsed = parse_iso_datetime(value, field_name)
    return parsed.date() if parsed else None


def isoformat(value) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def now_utc() -> datetime:
    """Current naive UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
