"""
Tests for saved-view selection and the base query a view produces.
"""
from personal_os.domain.tasks.query import DEFAULT_SORT, UiFilters
from personal_os.domain.tasks.views import ViewSelection, base_query, selection_from_state
from personal_os.models import View, ViewColumn, ViewFilter, ViewSort

OPEN_ONLY = ViewFilter(field="status", operator="in", value=["todo", "in_progress"])

VIEWS = (
    View(id="v1", name="All"),
    View(
        id="v2",
        name="Open by due date",
        filters=(OPEN_ONLY,),
        sort=ViewSort(field="due_date", direction="asc"),
        columns=(ViewColumn(key="title", label="Title"), ViewColumn(key="due_date", label="Due")),
        is_default=True,
    ),
    View(id="v3", name="Third"),
)


def test_initial_prefers_default_view():
    assert ViewSelection.initial(VIEWS).active_view_id == "v2"


def test_initial_without_default_uses_first():
    views = (View(id="a", name="A"), View(id="b", name="B"))
    assert ViewSelection.initial(views).active_view_id == "a"


def test_initial_without_views():
    selection = ViewSelection.initial(())
    assert selection.active_view_id is None
    assert selection.active_view is None


def test_select_unknown_view_keeps_current():
    selection = ViewSelection.initial(VIEWS)
    assert selection.select("nope") is selection
    assert selection.select("v3").active_view_id == "v3"


def test_after_delete_of_active_falls_back_to_first_remaining():
    selection = ViewSelection.initial(VIEWS)
    after = selection.after_delete("v2")
    assert after.active_view_id == "v1"
    assert [v.id for v in after.views] == ["v1", "v3"]


def test_after_delete_of_other_view_keeps_active():
    selection = ViewSelection.initial(VIEWS).select("v3")
    assert selection.after_delete("v1").active_view_id == "v3"


def test_after_delete_of_last_view():
    selection = ViewSelection.initial((View(id="only", name="Only"),))
    assert selection.after_delete("only").active_view_id is None


def test_refreshed_keeps_active_when_still_present():
    selection = ViewSelection.initial(VIEWS).select("v3")
    assert selection.refreshed(VIEWS[1:]).active_view_id == "v3"
    assert selection.refreshed(VIEWS[:2]).active_view_id == "v2"


def test_selection_round_trips_through_state():
    selection = ViewSelection.initial(VIEWS).select("v1")
    restored = selection_from_state(VIEWS, selection.to_state())
    assert restored.active_view_id == "v1"
    assert selection_from_state(VIEWS, {}).active_view_id == "v2"


def test_columns_follow_active_view():
    selection = ViewSelection.initial(VIEWS)
    assert [c.key for c in selection.columns()] == ["title", "due_date"]
    assert "priority_score" in [c.key for c in selection.select("v1").columns()]


def test_base_query_uses_view_filters_and_sort():
    query = base_query(ViewSelection.initial(VIEWS), ui=UiFilters(status="todo"), search="x", scope={"client_id": "c"})
    assert query.view_filters == (OPEN_ONLY,)
    assert query.sort == ViewSort(field="due_date", direction="asc")
    assert query.ui.status == "todo"
    assert query.search == "x"
    assert dict(query.scope) == {"client_id": "c"}


def test_base_query_without_view_sorts_by_priority():
    query = base_query(ViewSelection.initial(()))
    assert query.view_filters == ()
    assert query.sort == DEFAULT_SORT
    assert base_query(ViewSelection.initial(VIEWS).select("v1")).sort == DEFAULT_SORT
