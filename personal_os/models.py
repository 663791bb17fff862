# -*- coding: utf-8 -*-
"""Shared data models (tasks, clients, projects, templates, views, inbox)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from personal_os.constants import (
    CLIENT_STATUS_ACTIVE,
    INBOX_STATUS_UNREAD,
    RATING_DEFAULT,
    SORT_DESC,
    TASK_STATUS_TODO,
)
from personal_os.priority import score


@dataclass(frozen=True)
class Domain:
    id: str
    name: str
    parent_id: Optional[str] = None
    color: Optional[str] = None
    sort_order: int = 0
    created_at: str = ""
    children: tuple["Domain", ...] = ()


@dataclass(frozen=True)
class Client:
    id: str
    name: str
    status: str = CLIENT_STATUS_ACTIVE  # 'active' | 'onboarding' | 'paused' | 'completed'
    onboarded_at: Optional[str] = None
    notes: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: str = ""


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    client_id: Optional[str] = None
    domain_id: Optional[str] = None
    status: str = "active"  # 'active' | 'paused' | 'completed' | 'archived'
    description: Optional[str] = None
    created_at: str = ""
    client: Optional[Client] = None
    domain: Optional[Domain] = None


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: Optional[str] = None
    project_id: Optional[str] = None
    client_id: Optional[str] = None
    domain_id: Optional[str] = None
    leverage: int = RATING_DEFAULT
    urgency: int = RATING_DEFAULT
    effort: int = RATING_DEFAULT
    status: str = TASK_STATUS_TODO  # 'todo' | 'in_progress' | 'done' | 'archived'
    due_date: Optional[str] = None  # YYYY-MM-DD
    template_task_id: Optional[str] = None
    created_at: str = ""
    completed_at: Optional[str] = None
    custom_fields: dict[str, Any] = field(default_factory=dict)
    # denormalized related records, attached by the storage layer
    domain: Optional[Domain] = None
    client: Optional[Client] = None
    project: Optional[Project] = None

    @property
    def priority_score(self) -> float:
        # derived only; there is no stored or writable score
        return score(self.leverage, self.urgency, self.effort)


@dataclass(frozen=True)
class TemplateTask:
    id: str
    template_id: str
    title: str
    description: Optional[str] = None
    domain_id: Optional[str] = None
    default_urgency: int = RATING_DEFAULT
    default_leverage: int = RATING_DEFAULT
    default_effort: int = RATING_DEFAULT
    sort_order: int = 0


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: Optional[str] = None
    created_at: str = ""
    template_tasks: tuple[TemplateTask, ...] = ()


@dataclass(frozen=True)
class ViewColumn:
    key: str
    label: str
    type: str = "built-in"  # 'built-in' | 'custom'
    visible: bool = True
    width: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"key": self.key, "label": self.label, "type": self.type, "visible": self.visible}
        if self.width is not None:
            data["width"] = self.width
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewColumn":
        return cls(
            key=data["key"],
            label=data.get("label") or data["key"],
            type=data.get("type", "built-in"),
            visible=bool(data.get("visible", True)),
            width=data.get("width"),
        )


@dataclass(frozen=True)
class ViewFilter:
    field: str
    operator: str  # 'eq' | 'neq' | 'in' | 'gte' | 'lte' | 'contains'; unknown operators pass
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewFilter":
        return cls(field=data["field"], operator=data.get("operator", ""), value=data.get("value"))


@dataclass(frozen=True)
class ViewSort:
    field: str
    direction: str = SORT_DESC  # 'asc' | 'desc'

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "direction": self.direction}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewSort":
        return cls(field=data["field"], direction=data.get("direction", SORT_DESC))


@dataclass(frozen=True)
class View:
    id: str
    name: str
    description: Optional[str] = None
    columns: tuple[ViewColumn, ...] = ()
    filters: tuple[ViewFilter, ...] = ()
    sort: Optional[ViewSort] = None
    group_by: Optional[str] = None
    is_default: bool = False
    sort_order: int = 0
    created_at: str = ""


@dataclass(frozen=True)
class CustomFieldDef:
    id: str
    name: str
    field_key: str
    field_type: str  # 'text' | 'number' | 'select' | 'date' | 'checkbox' | 'url'
    options: tuple[str, ...] = ()
    color: Optional[str] = None
    sort_order: int = 0
    created_at: str = ""


@dataclass(frozen=True)
class InboxItem:
    id: str
    source: str  # 'slack' | 'email' | 'manual'
    sender: Optional[str] = None
    subject: Optional[str] = None
    content: Optional[str] = None
    received_at: str = ""
    status: str = INBOX_STATUS_UNREAD  # 'unread' | 'read' | 'actioned' | 'archived'
    linked_task_id: Optional[str] = None
    created_at: str = ""


@dataclass(frozen=True)
class DashboardStats:
    total_tasks: int = 0
    active_tasks: int = 0
    done_tasks: int = 0
    total_clients: int = 0
    unread_inbox: int = 0
