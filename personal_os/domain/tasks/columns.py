"""
Table columns and cell renderers.

Renderers are registered per column key; custom columns fall back to the
renderer registered for the "custom" column type. Adding a new column kind is
a RendererRegistry.register() call, not an edit to a central switch.
"""
from __future__ import annotations

from datetime import date
from typing import Callable, Mapping, Optional

from personal_os.constants import EMPTY_CELL, STATUS_LABELS, TASK_STATUS_DONE
from personal_os.domain.common.time import parse_due_date
from personal_os.models import Task, View, ViewColumn
from personal_os.priority import format_score

CellRenderer = Callable[[Task, ViewColumn], str]

BUILT_IN_COLUMNS: tuple[ViewColumn, ...] = (
    ViewColumn(key="title", label="Title", type="built-in", visible=True, width=280),
    ViewColumn(key="status", label="Status", type="built-in", visible=True, width=120),
    ViewColumn(key="domain", label="Domain", type="built-in", visible=True, width=140),
    ViewColumn(key="client", label="Client", type="built-in", visible=True, width=140),
    ViewColumn(key="project", label="Project", type="built-in", visible=True, width=140),
    ViewColumn(key="leverage", label="Leverage", type="built-in", visible=True, width=90),
    ViewColumn(key="urgency", label="Urgency", type="built-in", visible=True, width=90),
    ViewColumn(key="effort", label="Effort", type="built-in", visible=True, width=90),
    ViewColumn(key="priority_score", label="Score", type="built-in", visible=True, width=80),
    ViewColumn(key="due_date", label="Due Date", type="built-in", visible=True, width=120),
    ViewColumn(key="description", label="Description", type="built-in", visible=False, width=200),
    ViewColumn(key="created_at", label="Created", type="built-in", visible=False, width=120),
)

BUILT_IN_KEYS = frozenset(c.key for c in BUILT_IN_COLUMNS)


def resolve_columns(view: Optional[View]) -> list[ViewColumn]:
    """Visible columns of the view if it defines any columns, else the visible built-ins."""
    if view is not None and view.columns:
        return [c for c in view.columns if c.visible]
    return [c for c in BUILT_IN_COLUMNS if c.visible]


def columns_for_new_view(visibility: Optional[Mapping[str, bool]] = None) -> tuple[ViewColumn, ...]:
    visibility = visibility or {}
    return tuple(
        ViewColumn(key=c.key, label=c.label, type=c.type, visible=visibility.get(c.key, c.visible), width=c.width)
        for c in BUILT_IN_COLUMNS
    )


# ---------------------------------------------------------------------------
# Renderer registry
# ---------------------------------------------------------------------------

CUSTOM_COLUMN_TYPE = "custom"


class RendererRegistry:
    def __init__(self) -> None:
        self._by_key: dict[str, CellRenderer] = {}
        self._by_type: dict[str, CellRenderer] = {}

    def register(self, key: str, renderer: CellRenderer) -> None:
        self._by_key[key] = renderer

    def register_type(self, column_type: str, renderer: CellRenderer) -> None:
        self._by_type[column_type] = renderer

    def renderer_for(self, column: ViewColumn) -> CellRenderer:
        if column.key in self._by_key:
            return self._by_key[column.key]
        return self._by_type.get(column.type, _render_empty)

    def render(self, task: Task, column: ViewColumn) -> str:
        return self.renderer_for(column)(task, column)


def _render_empty(task: Task, column: ViewColumn) -> str:
    return EMPTY_CELL


def _text_or_empty(value: Optional[str]) -> str:
    return value if value else EMPTY_CELL


def _render_title(task: Task, column: ViewColumn) -> str:
    mark = "✅" if task.status == TASK_STATUS_DONE else "⚪"
    return f"{mark} {task.title}"


def _render_status(task: Task, column: ViewColumn) -> str:
    return STATUS_LABELS.get(task.status, task.status)


def _related_name(attr: str) -> CellRenderer:
    def render(task: Task, column: ViewColumn) -> str:
        related = getattr(task, attr)
        return related.name if related is not None else EMPTY_CELL
    return render


def _rating(attr: str) -> CellRenderer:
    def render(task: Task, column: ViewColumn) -> str:
        return str(getattr(task, attr))
    return render


def _render_score(task: Task, column: ViewColumn) -> str:
    return format_score(task.priority_score)


def render_due_date(task: Task, column: ViewColumn, today: Optional[date] = None) -> str:
    due = parse_due_date(task.due_date)
    if due is None:
        return EMPTY_CELL
    today = today or date.today()
    overdue = due < today and task.status != TASK_STATUS_DONE
    return f"{due.isoformat()} (overdue)" if overdue else due.isoformat()


def _render_description(task: Task, column: ViewColumn) -> str:
    return _text_or_empty(task.description)


def _render_created(task: Task, column: ViewColumn) -> str:
    return task.created_at[:10] if task.created_at else EMPTY_CELL


def _render_custom(task: Task, column: ViewColumn) -> str:
    value = (task.custom_fields or {}).get(column.key)
    if value is None:
        return EMPTY_CELL
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def default_registry() -> RendererRegistry:
    registry = RendererRegistry()
    registry.register("title", _render_title)
    registry.register("status", _render_status)
    for attr in ("domain", "client", "project"):
        registry.register(attr, _related_name(attr))
    for attr in ("leverage", "urgency", "effort"):
        registry.register(attr, _rating(attr))
    registry.register("priority_score", _render_score)
    registry.register("due_date", render_due_date)
    registry.register("description", _render_description)
    registry.register("created_at", _render_created)
    registry.register_type(CUSTOM_COLUMN_TYPE, _render_custom)
    return registry


def render_row(task: Task, columns: list[ViewColumn], registry: RendererRegistry) -> list[tuple[str, str]]:
    """[(label, rendered value), ...] in column order."""
    return [(c.label, registry.render(task, c)) for c in columns]
