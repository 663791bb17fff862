"""
Saved-view selection.

The active view is explicit, immutable state held by the caller (the chat's
FSM data in the bot) and threaded into every query. There is no module-level
"current view".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from personal_os.domain.tasks.columns import resolve_columns
from personal_os.domain.tasks.query import DEFAULT_SORT, TaskQuery, UiFilters
from personal_os.models import View, ViewColumn


@dataclass(frozen=True)
class ViewSelection:
    views: tuple[View, ...] = ()
    active_view_id: Optional[str] = None

    @classmethod
    def initial(cls, views: Sequence[View]) -> "ViewSelection":
        """Default view if one is flagged, else the first view, else none."""
        views = tuple(views)
        if not views:
            return cls(views=(), active_view_id=None)
        default = next((v for v in views if v.is_default), views[0])
        return cls(views=views, active_view_id=default.id)

    @property
    def active_view(self) -> Optional[View]:
        if self.active_view_id is None:
            return None
        return next((v for v in self.views if v.id == self.active_view_id), None)

    def select(self, view_id: Optional[str]) -> "ViewSelection":
        if view_id is not None and all(v.id != view_id for v in self.views):
            return self
        return ViewSelection(views=self.views, active_view_id=view_id)

    def after_delete(self, view_id: str) -> "ViewSelection":
        remaining = tuple(v for v in self.views if v.id != view_id)
        if self.active_view_id != view_id:
            return ViewSelection(views=remaining, active_view_id=self.active_view_id)
        return ViewSelection(views=remaining, active_view_id=remaining[0].id if remaining else None)

    def refreshed(self, views: Sequence[View]) -> "ViewSelection":
        """Swap in a freshly loaded view list, keeping the active view when it still exists."""
        views = tuple(views)
        if self.active_view_id is not None and any(v.id == self.active_view_id for v in views):
            return ViewSelection(views=views, active_view_id=self.active_view_id)
        return ViewSelection.initial(views)

    def columns(self) -> list[ViewColumn]:
        return resolve_columns(self.active_view)

    # FSM storage holds plain data only
    def to_state(self) -> dict[str, Any]:
        return {"active_view_id": self.active_view_id}


def selection_from_state(views: Sequence[View], state: dict[str, Any]) -> ViewSelection:
    selection = ViewSelection.initial(views)
    wanted = state.get("active_view_id")
    return selection.select(wanted) if wanted else selection


def base_query(
    selection: ViewSelection,
    ui: Optional[UiFilters] = None,
    search: str = "",
    scope: Optional[dict[str, Any]] = None,
) -> TaskQuery:
    """TaskQuery carrying the active view's filters and sort plus the caller's layers."""
    view = selection.active_view
    filters = view.filters if view is not None else ()
    sort = view.sort if view is not None and view.sort is not None else DEFAULT_SORT
    return TaskQuery(
        scope=dict(scope or {}),
        view_filters=tuple(filters),
        ui=ui or UiFilters(),
        search=search,
        sort=sort,
    )
