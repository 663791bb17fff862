"""
Task query engine: filter, search and sort an in-memory task collection.

Every task listing (card list, table, matrix, client / project pages) runs the
same pipeline with different layers stacked on top of each other:

1. scope filter     - fixed equality constraints from the calling context
2. view filters     - (field, operator, value) clauses of the active saved view
3. UI filters       - status / domain equality, "all" = no constraint
4. search           - case-insensitive substring over title, description and
                      the names of the related domain / client / project

then at most one sort. Each layer only narrows the previous result, so the
order of the layers never changes the final set.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Iterable, Mapping, Optional, Sequence

from personal_os.constants import (
    FILTER_ALL,
    NESTED_NAME_FIELDS,
    OP_CONTAINS,
    OP_EQ,
    OP_GTE,
    OP_IN,
    OP_LTE,
    OP_NEQ,
    SORT_ASC,
    SORT_DESC,
)
from personal_os.models import Task, ViewFilter, ViewSort

DEFAULT_SORT = ViewSort(field="priority_score", direction=SORT_DESC)

_MISSING = object()


@dataclass(frozen=True)
class UiFilters:
    status: str = FILTER_ALL
    domain_id: str = FILTER_ALL


@dataclass(frozen=True)
class TaskQuery:
    """
    Declarative description of one listing.

    sort=None keeps input order; leave it at the default for priority order.
    """
    scope: Mapping[str, Any] = field(default_factory=dict)
    view_filters: tuple[ViewFilter, ...] = ()
    ui: UiFilters = UiFilters()
    search: str = ""
    sort: Optional[ViewSort] = DEFAULT_SORT


# ---------------------------------------------------------------------------
# Field resolution
# ---------------------------------------------------------------------------


def field_value(task: Task, name: str) -> Any:
    """Task attribute, else custom field, else None."""
    value = getattr(task, name, _MISSING)
    if value is not _MISSING:
        return value
    return (task.custom_fields or {}).get(name)


def sort_value(task: Task, name: str) -> Any:
    """Like field_value, but domain / client / project resolve to the related record's name."""
    if name in NESTED_NAME_FIELDS:
        related = getattr(task, name, None)
        return related.name if related is not None else None
    return field_value(task, name)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equal(a: Any, b: Any) -> bool:
    # True == 1 in Python; a boolean only ever equals a boolean here
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if _is_number(a) and _is_number(b):
        return a == b
    if type(a) is not type(b):
        return False
    return a == b


# ---------------------------------------------------------------------------
# Filter clauses
# ---------------------------------------------------------------------------


def evaluate_filter(task: Task, clause: ViewFilter) -> bool:
    """True if the task satisfies the clause. Unknown operators always pass."""
    val = field_value(task, clause.field)
    op = clause.operator
    if op == OP_EQ:
        return _strict_equal(val, clause.value)
    if op == OP_NEQ:
        return not _strict_equal(val, clause.value)
    if op == OP_IN:
        if not isinstance(clause.value, (list, tuple, set, frozenset)):
            return False
        return any(_strict_equal(val, candidate) for candidate in clause.value)
    if op in (OP_GTE, OP_LTE):
        if not _is_number(val) or not _is_number(clause.value):
            return False
        return val >= clause.value if op == OP_GTE else val <= clause.value
    if op == OP_CONTAINS:
        if not isinstance(val, str):
            return False
        return str(clause.value).lower() in val.lower()
    return True


def apply_scope(tasks: Iterable[Task], scope: Mapping[str, Any]) -> list[Task]:
    result = list(tasks)
    for name, expected in scope.items():
        result = [t for t in result if field_value(t, name) == expected]
    return result


def apply_view_filters(tasks: Iterable[Task], clauses: Sequence[ViewFilter]) -> list[Task]:
    result = list(tasks)
    for clause in clauses:
        result = [t for t in result if evaluate_filter(t, clause)]
    return result


def apply_ui_filters(tasks: Iterable[Task], ui: UiFilters) -> list[Task]:
    result = list(tasks)
    if ui.status != FILTER_ALL:
        result = [t for t in result if t.status == ui.status]
    if ui.domain_id != FILTER_ALL:
        result = [t for t in result if t.domain_id == ui.domain_id]
    return result


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def search_haystack(task: Task) -> list[str]:
    fields = [task.title, task.description]
    for related in (task.domain, task.client, task.project):
        fields.append(related.name if related is not None else None)
    return [f for f in fields if f]


def matches_search(task: Task, text: str) -> bool:
    if not text:
        return True
    needle = text.lower()
    return any(needle in value.lower() for value in search_haystack(task))


def apply_search(tasks: Iterable[Task], text: str) -> list[Task]:
    if not text:
        return list(tasks)
    return [t for t in tasks if matches_search(t, text)]


# ---------------------------------------------------------------------------
# Sort
# ---------------------------------------------------------------------------


def compare(a: Any, b: Any) -> int:
    """Ascending comparison; None is handled by the caller."""
    if _is_number(a) and _is_number(b):
        return (a > b) - (a < b)
    sa, sb = str(a), str(b)
    return (sa > sb) - (sa < sb)


def sort_tasks(tasks: Iterable[Task], sort: Optional[ViewSort]) -> list[Task]:
    """
    Stable sort by one field.

    Nulls go last in both directions, two nulls are equal, numbers compare
    numerically, everything else as case-sensitive text. Ties keep input order.
    """
    result = list(tasks)
    if sort is None:
        return result
    descending = sort.direction == SORT_DESC

    def cmp(x: Task, y: Task) -> int:
        a = sort_value(x, sort.field)
        b = sort_value(y, sort.field)
        if a is None and b is None:
            return 0
        if a is None:
            return 1
        if b is None:
            return -1
        c = compare(a, b)
        return -c if descending else c

    result.sort(key=cmp_to_key(cmp))
    return result


def next_sort(current: Optional[ViewSort], field_name: str) -> Optional[ViewSort]:
    """Header-click cycle: other field -> asc, asc -> desc, desc -> no sort."""
    if current is None or current.field != field_name:
        return ViewSort(field=field_name, direction=SORT_ASC)
    if current.direction == SORT_ASC:
        return ViewSort(field=field_name, direction=SORT_DESC)
    return None


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def run_query(tasks: Iterable[Task], query: TaskQuery) -> list[Task]:
    result = apply_scope(tasks, query.scope)
    result = apply_view_filters(result, query.view_filters)
    result = apply_ui_filters(result, query.ui)
    result = apply_search(result, query.search)
    return sort_tasks(result, query.sort)


def query_tasks(
    tasks: Iterable[Task],
    scope: Optional[Mapping[str, Any]] = None,
    view_filters: Sequence[ViewFilter] = (),
    ui_filters: Optional[UiFilters] = None,
    search: str = "",
    sort: Optional[ViewSort] = DEFAULT_SORT,
) -> list[Task]:
    return run_query(
        tasks,
        TaskQuery(
            scope=dict(scope or {}),
            view_filters=tuple(view_filters),
            ui=ui_filters or UiFilters(),
            search=search or "",
            sort=sort,
        ),
    )
