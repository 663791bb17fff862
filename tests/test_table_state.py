"""
Tests for the per-chat task table state kept in FSM data.
"""
from personal_os.domain.tasks.query import DEFAULT_SORT
from personal_os.models import View, ViewSort
from personal_os.ui.telegram.utils.table_state import (
    BUILTIN_VIEW,
    PAGE_SIZE,
    STATE_KEY,
    TableState,
    page_slice,
)

VIEWS = [
    View(id="v1", name="First"),
    View(id="v2", name="Due soon", sort=ViewSort(field="due_date", direction="asc"), is_default=True),
]


def test_defaults_from_empty_data():
    ts = TableState.from_data({})
    assert ts == TableState()
    assert ts.status == "all"
    assert ts.page == 0


def test_to_data_round_trip():
    ts = TableState(active_view_id="v1", status="done", search="bank", page=2, selected=("a", "b"))
    data = ts.to_data()
    assert set(data) == {STATE_KEY}
    assert TableState.from_data(data) == ts


def test_cleared_sort_survives_round_trip():
    """An explicit 'no sort' is different from 'use the view's sort'."""
    ts = TableState(sort=None)
    restored = TableState.from_data(ts.to_data())
    assert restored.sort is None
    assert restored.effective_sort(restored.selection([])) is None
    assert "sort" not in TableState().to_data()[STATE_KEY]


def test_effective_sort_comes_from_view_until_header_click():
    ts = TableState()
    selection = ts.selection(VIEWS)
    assert selection.active_view_id == "v2"
    assert ts.effective_sort(selection) == ViewSort(field="due_date", direction="asc")

    clicked = ts.click_header("due_date", selection)
    assert clicked.effective_sort(selection) == ViewSort(field="due_date", direction="desc")
    cleared = clicked.click_header("due_date", selection)
    assert cleared.effective_sort(selection) is None


def test_header_click_cycle_from_default_sort():
    ts = TableState()
    selection = ts.selection([])
    assert ts.effective_sort(selection) == DEFAULT_SORT

    ts = ts.click_header("title", selection)
    assert ts.effective_sort(selection) == ViewSort(field="title", direction="asc")
    ts = ts.click_header("title", selection)
    assert ts.effective_sort(selection) == ViewSort(field="title", direction="desc")
    ts = ts.click_header("title", selection)
    assert ts.effective_sort(selection) is None


def test_builtin_marker_ignores_default_view():
    ts = TableState().with_view(BUILTIN_VIEW)
    selection = ts.selection(VIEWS)
    assert selection.active_view_id is None
    assert ts.effective_sort(selection) == DEFAULT_SORT


def test_with_view_resets_sort_page_and_selection():
    ts = TableState(sort=None, page=3, selected=("a",)).with_view("v1")
    assert ts.active_view_id == "v1"
    assert ts.page == 0
    assert ts.selected == ()
    assert ts.effective_sort(ts.selection(VIEWS)) == DEFAULT_SORT


def test_cycle_status_wraps():
    ts = TableState()
    seen = []
    for _ in range(5):
        ts = ts.cycle_status()
        seen.append(ts.status)
    assert seen == ["todo", "in_progress", "done", "archived", "all"]


def test_cycle_domain_wraps_and_recovers_from_stale_id():
    ts = TableState().cycle_domain(["d1", "d2"])
    assert ts.domain_id == "d1"
    assert ts.cycle_domain(["d1", "d2"]).domain_id == "d2"
    assert TableState(domain_id="gone").cycle_domain(["d1"]).domain_id == "d1"


def test_filters_reset_page():
    ts = TableState(page=4)
    assert ts.cycle_status().page == 0
    assert ts.with_search("  invoice ").search == "invoice"
    assert ts.with_search("x").page == 0


def test_query_carries_ui_layers():
    ts = TableState(status="done", domain_id="d1", search="bank", sort=None)
    query = ts.query(ts.selection([]))
    assert query.ui.status == "done"
    assert query.ui.domain_id == "d1"
    assert query.search == "bank"
    assert query.sort is None


def test_toggle_selected():
    ts = TableState().toggle_selected("a").toggle_selected("b")
    assert ts.selected == ("a", "b")
    ts = ts.toggle_selected("a")
    assert ts.selected == ("b",)
    assert ts.clear_selection().selected == ()


def test_paging_is_clamped():
    assert TableState().step_page(-1).page == 0
    assert TableState(page=1).step_page(1).page == 2
    assert TableState().with_page(10, total=PAGE_SIZE + 1).page == 1
    assert TableState().with_page(3, total=0).page == 0


def test_page_slice():
    items = list(range(PAGE_SIZE * 2 + 3))
    assert page_slice(items, 0) == list(range(PAGE_SIZE))
    assert page_slice(items, 2) == [PAGE_SIZE * 2, PAGE_SIZE * 2 + 1, PAGE_SIZE * 2 + 2]
    assert page_slice(items, 5) == []
