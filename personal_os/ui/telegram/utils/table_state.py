"""
Per-chat task table state, stored as plain data in the FSM storage.

Keys:
  active_view_id  - saved view in use (None = default view, "builtin" = built-in columns)
  status, domain  - UI filters, "all" = no constraint
  search          - free-text search
  sort            - absent: the view's sort; None: input order; dict: explicit sort
  page            - 0-based page of the table
  selected        - task ids picked for a bulk action
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence

from personal_os.constants import FILTER_ALL, TASK_STATUSES
from personal_os.domain.tasks.query import TaskQuery, UiFilters, next_sort
from personal_os.domain.tasks.views import ViewSelection, base_query, selection_from_state
from personal_os.models import View, ViewSort

STATE_KEY = "table"
PAGE_SIZE = 8

_UNSET = "unset"
# active_view_id value for "no saved view, built-in columns"
BUILTIN_VIEW = "builtin"


@dataclass(frozen=True)
class TableState:
    active_view_id: Optional[str] = None
    status: str = FILTER_ALL
    domain_id: str = FILTER_ALL
    search: str = ""
    sort: Any = _UNSET  # _UNSET | None | dict
    page: int = 0
    selected: tuple[str, ...] = ()

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "TableState":
        raw = data.get(STATE_KEY) or {}
        return cls(
            active_view_id=raw.get("active_view_id"),
            status=raw.get("status", FILTER_ALL),
            domain_id=raw.get("domain_id", FILTER_ALL),
            search=raw.get("search", ""),
            sort=raw["sort"] if "sort" in raw else _UNSET,
            page=int(raw.get("page", 0)),
            selected=tuple(raw.get("selected", ())),
        )

    def to_data(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "active_view_id": self.active_view_id,
            "status": self.status,
            "domain_id": self.domain_id,
            "search": self.search,
            "page": self.page,
            "selected": list(self.selected),
        }
        if self.sort != _UNSET:
            out["sort"] = self.sort
        return {STATE_KEY: out}

    def selection(self, views: Sequence[View]) -> ViewSelection:
        if self.active_view_id == BUILTIN_VIEW:
            return ViewSelection(views=tuple(views), active_view_id=None)
        return selection_from_state(views, {"active_view_id": self.active_view_id})

    def effective_sort(self, selection: ViewSelection) -> Optional[ViewSort]:
        if self.sort == _UNSET:
            return base_query(selection).sort
        if self.sort is None:
            return None
        return ViewSort.from_dict(self.sort)

    def query(self, selection: ViewSelection) -> TaskQuery:
        q = base_query(
            selection,
            ui=UiFilters(status=self.status, domain_id=self.domain_id),
            search=self.search,
        )
        return replace(q, sort=self.effective_sort(selection))

    # --- transitions ---

    def with_view(self, view_id: Optional[str]) -> "TableState":
        # a new view brings its own sort
        return replace(self, active_view_id=view_id, sort=_UNSET, page=0, selected=())

    def cycle_status(self) -> "TableState":
        order = (FILTER_ALL,) + TASK_STATUSES
        idx = order.index(self.status) if self.status in order else 0
        return replace(self, status=order[(idx + 1) % len(order)], page=0)

    def cycle_domain(self, domain_ids: Sequence[str]) -> "TableState":
        order = (FILTER_ALL,) + tuple(domain_ids)
        idx = order.index(self.domain_id) if self.domain_id in order else 0
        return replace(self, domain_id=order[(idx + 1) % len(order)], page=0)

    def with_search(self, text: str) -> "TableState":
        return replace(self, search=text.strip(), page=0)

    def click_header(self, field_name: str, selection: ViewSelection) -> "TableState":
        new = next_sort(self.effective_sort(selection), field_name)
        return replace(self, sort=new.to_dict() if new else None, page=0)

    def toggle_selected(self, task_id: str) -> "TableState":
        if task_id in self.selected:
            return replace(self, selected=tuple(i for i in self.selected if i != task_id))
        return replace(self, selected=self.selected + (task_id,))

    def clear_selection(self) -> "TableState":
        return replace(self, selected=())

    def step_page(self, delta: int) -> "TableState":
        return replace(self, page=max(0, self.page + delta))

    def with_page(self, page: int, total: int) -> "TableState":
        last = max(0, (total - 1) // PAGE_SIZE)
        return replace(self, page=min(max(0, page), last))


def page_slice(items: Sequence[Any], page: int) -> list[Any]:
    start = page * PAGE_SIZE
    return list(items[start:start + PAGE_SIZE])
