from __future__ import annotations

from typing import Optional

from personal_os.constants import PROJECT_STATUSES
from personal_os.domain.common.errors import ValidationError

PROJECT_NAME_MAX_LEN = 120


def validate_project_name(name: Optional[str]) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError("Project name is required.")
    if len(value) > PROJECT_NAME_MAX_LEN:
        raise ValidationError(f"Project name is too long (max {PROJECT_NAME_MAX_LEN} chars).")
    return value


def next_project_status(status: str) -> str:
    """active -> paused -> completed -> archived -> active"""
    idx = PROJECT_STATUSES.index(status) if status in PROJECT_STATUSES else -1
    return PROJECT_STATUSES[(idx + 1) % len(PROJECT_STATUSES)]
