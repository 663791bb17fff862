from __future__ import annotations

import re
from typing import Optional

from personal_os.constants import CUSTOM_FIELD_TYPES, RATING_FIELDS
from personal_os.domain.common.errors import ValidationError
from personal_os.domain.projects.rules import validate_project_name
from personal_os.domain.tasks.rules import parse_rating, validate_field_key


def parse_quick_add(text: str) -> tuple[str, dict[str, int]]:
    """
    'Write report | 4 3 2' -> ('Write report', {'leverage': 4, 'urgency': 3, 'effort': 2})
    'Write report'         -> ('Write report', {})
    """
    title, sep, rest = (text or "").partition("|")
    title = title.strip()
    if not sep or not rest.strip():
        return title, {}
    parts = rest.split()
    if len(parts) != len(RATING_FIELDS):
        raise ValidationError("Give all three ratings: leverage urgency effort (1-5).")
    return title, {name: parse_rating(name, raw) for name, raw in zip(RATING_FIELDS, parts)}


def parse_edit_command(args: str) -> tuple[str, str, Optional[str]]:
    """
    '<task id> <field> <value...>' -> (task_ref, field, value). A missing value means "clear".
    """
    parts = (args or "").split(maxsplit=2)
    if len(parts) < 2:
        raise ValidationError("Give a task id and a field.")
    task_ref, field = parts[0], parts[1].lower()
    value = parts[2].strip() if len(parts) == 3 else None
    return task_ref, field, value


def clear_marker(text: Optional[str]) -> str:
    """'-' in a free-text reply means 'clear this value'."""
    value = (text or "").strip()
    return "" if value == "-" else value


_STEP_RATINGS = re.compile(r"^(.*?)\s*\((\S+)\s+(\S+)\s+(\S+)\)\s*$")


def parse_template_command(text: str) -> tuple[str, list[tuple[str, dict[str, int]]]]:
    """
    'Onboarding | Kickoff call (4 3 1); Send contract' ->
        ('Onboarding', [('Kickoff call', {'leverage': 4, 'urgency': 3, 'effort': 1}),
                        ('Send contract', {})])

    Steps are separated by ';'. Ratings in parentheses are optional per step.
    """
    name, sep, rest = (text or "").partition("|")
    name = name.strip()
    if not name:
        raise ValidationError("Template name is required.")
    steps: list[tuple[str, dict[str, int]]] = []
    for raw in rest.split(";") if sep else ():
        raw = raw.strip()
        if not raw:
            continue
        m = _STEP_RATINGS.match(raw)
        if m is None:
            steps.append((raw, {}))
            continue
        title = m.group(1).strip()
        if not title:
            raise ValidationError("Every step needs a title.")
        ratings = {field: parse_rating(field, value) for field, value in zip(RATING_FIELDS, m.groups()[1:])}
        steps.append((title, ratings))
    if not steps:
        raise ValidationError("Give at least one step after '|', separated by ';'.")
    return name, steps


def parse_project_command(text: str) -> tuple[str, Optional[str]]:
    """'Website redesign | New landing pages' -> ('Website redesign', 'New landing pages')"""
    name, _, description = (text or "").partition("|")
    return validate_project_name(name), description.strip() or None


_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def parse_domain_command(text: str) -> tuple[str, Optional[str], Optional[str]]:
    """
    'Work'                    -> ('Work', None, None)
    'Work / Clients #3b82f6'  -> ('Clients', 'Work', '#3B82F6')

    Returns (name, parent name, color).
    """
    parts = (text or "").split()
    color = None
    if parts and _COLOR.match(parts[-1]):
        color = parts.pop().upper()
    parent, sep, name = " ".join(parts).partition("/")
    if not sep:
        parent, name = "", parent
    name, parent = name.strip(), parent.strip()
    if not name:
        raise ValidationError("Domain name is required.")
    if sep and not parent:
        raise ValidationError("Give the parent domain before '/'.")
    if "/" in name:
        raise ValidationError("Domains nest one level only.")
    return name, parent or None, color


def field_key_for(name: str) -> str:
    """'Lead source' -> 'lead_source'"""
    return re.sub(r"[^a-z0-9]+", "_", (name or "").casefold()).strip("_")


def parse_field_command(text: str) -> tuple[str, str, str, tuple[str, ...]]:
    """
    'Channel | select | email, slack' -> ('Channel', 'channel', 'select', ('email', 'slack'))
    'Budget | number'                 -> ('Budget', 'budget', 'number', ())

    The type defaults to text; only select fields take options.
    """
    parts = [p.strip() for p in (text or "").split("|")]
    name = parts[0]
    if not name:
        raise ValidationError("Field name is required.")
    field_type = parts[1].lower() if len(parts) > 1 and parts[1] else "text"
    if field_type not in CUSTOM_FIELD_TYPES:
        raise ValidationError(f"Field type must be one of: {', '.join(CUSTOM_FIELD_TYPES)}.")
    options: tuple[str, ...] = ()
    if len(parts) > 2:
        options = tuple(o.strip() for o in parts[2].split(",") if o.strip())
    if field_type == "select" and not options:
        raise ValidationError("A select field needs options: Name | select | a, b")
    if field_type != "select":
        options = ()
    return name[:80], validate_field_key(field_key_for(name)), field_type, options
