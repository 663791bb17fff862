"""
Tests for column resolution and the cell renderer registry.
"""
from datetime import date

from personal_os.constants import EMPTY_CELL
from personal_os.domain.tasks.columns import (
    BUILT_IN_COLUMNS,
    CUSTOM_COLUMN_TYPE,
    RendererRegistry,
    columns_for_new_view,
    default_registry,
    render_due_date,
    render_row,
    resolve_columns,
)
from personal_os.models import Client, Task, View, ViewColumn


def test_builtin_columns_when_no_view():
    keys = [c.key for c in resolve_columns(None)]
    assert keys[0] == "title"
    assert "priority_score" in keys
    # hidden by default
    assert "description" not in keys
    assert "created_at" not in keys


def test_view_without_columns_falls_back_to_builtins():
    view = View(id="v", name="V")
    assert resolve_columns(view) == resolve_columns(None)


def test_view_columns_only_visible_in_order():
    view = View(
        id="v",
        name="V",
        columns=(
            ViewColumn(key="effort", label="Effort"),
            ViewColumn(key="title", label="Title"),
            ViewColumn(key="status", label="Status", visible=False),
        ),
    )
    assert [c.key for c in resolve_columns(view)] == ["effort", "title"]


def test_columns_for_new_view_applies_visibility():
    columns = columns_for_new_view({"description": True, "due_date": False})
    by_key = {c.key: c for c in columns}
    assert len(columns) == len(BUILT_IN_COLUMNS)
    assert by_key["description"].visible is True
    assert by_key["due_date"].visible is False
    assert by_key["title"].visible is True


def test_default_renderers():
    registry = default_registry()
    task = Task(
        id="t1",
        title="Ship it",
        leverage=5,
        urgency=5,
        effort=1,
        client=Client(id="c", name="Acme"),
    )
    cells = dict(render_row(task, resolve_columns(None), registry))
    assert cells["Title"] == "⚪ Ship it"
    assert cells["Status"] == "To Do"
    assert cells["Client"] == "Acme"
    assert cells["Domain"] == EMPTY_CELL
    assert cells["Score"] == "15.0"
    assert cells["Leverage"] == "5"
    assert cells["Due Date"] == EMPTY_CELL


def test_done_title_is_checked():
    task = Task(id="t1", title="Done thing", status="done")
    assert default_registry().render(task, ViewColumn(key="title", label="Title")) == "✅ Done thing"


def test_due_date_marks_overdue_unless_done():
    column = ViewColumn(key="due_date", label="Due")
    today = date(2026, 5, 10)
    late = Task(id="a", title="A", due_date="2026-05-01")
    assert render_due_date(late, column, today=today) == "2026-05-01 (overdue)"
    finished = Task(id="b", title="B", due_date="2026-05-01", status="done")
    assert render_due_date(finished, column, today=today) == "2026-05-01"
    upcoming = Task(id="c", title="C", due_date="2026-06-01")
    assert render_due_date(upcoming, column, today=today) == "2026-06-01"


def test_custom_columns_render_by_type():
    registry = default_registry()
    task = Task(id="a", title="A", custom_fields={"billable": True, "hours": 3})
    assert registry.render(task, ViewColumn(key="billable", label="Billable", type=CUSTOM_COLUMN_TYPE)) == "yes"
    assert registry.render(task, ViewColumn(key="hours", label="Hours", type=CUSTOM_COLUMN_TYPE)) == "3"
    assert registry.render(task, ViewColumn(key="missing", label="M", type=CUSTOM_COLUMN_TYPE)) == EMPTY_CELL


def test_unregistered_column_renders_empty():
    task = Task(id="a", title="A")
    assert RendererRegistry().render(task, ViewColumn(key="title", label="Title")) == EMPTY_CELL


def test_register_new_column_kind():
    registry = default_registry()
    registry.register("title_length", lambda task, column: str(len(task.title)))
    task = Task(id="a", title="Hello")
    assert registry.render(task, ViewColumn(key="title_length", label="Len")) == "5"
