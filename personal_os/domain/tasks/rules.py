from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from personal_os.constants import RATING_FIELDS, TASK_STATUSES
from personal_os.domain.common.errors import ValidationError
from personal_os.domain.common.time import parse_due_date
from personal_os.priority import validate_rating

# Fields a caller may write
EDITABLE_TASK_FIELDS = (
    "title",
    "description",
    "project_id",
    "client_id",
    "domain_id",
    "leverage",
    "urgency",
    "effort",
    "status",
    "due_date",
    "template_task_id",
    "completed_at",
    "custom_fields",
)

# Present on a loaded Task but never written back: the score is derived, the
# related records are denormalized copies.
DISCARDED_TASK_FIELDS = ("id", "priority_score", "domain", "client", "project", "created_at")

OPTIONAL_TEXT_FIELDS = ("description", "project_id", "client_id", "domain_id", "due_date")

# A custom field key may not shadow a task column or a derived value
RESERVED_TASK_KEYS = frozenset(EDITABLE_TASK_FIELDS + DISCARDED_TASK_FIELDS)

FIELD_KEY_RE = re.compile(r"^[a-z][a-z0-9_]{0,39}$")

TITLE_MAX_LEN = 500


def validate_title(title: Optional[str]) -> str:
    value = (title or "").strip()
    if not value:
        raise ValidationError("Title is required.")
    if len(value) > TITLE_MAX_LEN:
        raise ValidationError(f"Title is too long (max {TITLE_MAX_LEN} chars).")
    return value


def validate_client_name(name: Optional[str]) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError("Client name is required.")
    return value


def validate_status(status: str) -> str:
    if status not in TASK_STATUSES:
        raise ValidationError(f"Unknown status: {status}")
    return status


def parse_rating(name: str, raw: Any) -> int:
    """Inline-edit input: '4' -> 4. Anything that is not an integer in [1, 5] is rejected."""
    if isinstance(raw, str):
        try:
            raw = int(raw.strip())
        except ValueError:
            raise ValidationError(f"{name} must be a whole number between 1 and 5.") from None
    return validate_rating(name, raw)


def sanitize_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    """
    Drop derived and nested keys, validate the rest.

    Unknown keys are rejected rather than silently ignored.
    """
    clean: dict[str, Any] = {}
    for key, value in updates.items():
        if key in DISCARDED_TASK_FIELDS:
            continue
        if key not in EDITABLE_TASK_FIELDS:
            raise ValidationError(f"Unknown task field: {key}")
        if key == "title":
            value = validate_title(value)
        elif key in RATING_FIELDS:
            value = validate_rating(key, value)
        elif key == "status":
            value = validate_status(value)
        elif key == "due_date" and value and parse_due_date(value) is None:
            raise ValidationError("Due date must be YYYY-MM-DD.")
        clean[key] = value
    return clean


def validate_field_key(key: Optional[str]) -> str:
    """Custom field keys: lowercase snake_case, never a built-in task field."""
    value = (key or "").strip()
    if not FIELD_KEY_RE.match(value):
        raise ValidationError("Field key must be lowercase letters, digits or '_' (max 40).")
    if value in RESERVED_TASK_KEYS:
        raise ValidationError(f"'{value}' is a built-in task field.")
    return value
