from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt


def to_iso(dt: datetime) -> str:
    ensure_aware(dt)
    # stored as ISO 8601 in UTC
    return dt.astimezone(timezone.utc).isoformat()


def parse_due_date(value: Optional[str]) -> Optional[date]:
    """Due dates are stored as YYYY-MM-DD (or a full ISO timestamp). Returns None on bad input."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except (ValueError, TypeError):
        return None
