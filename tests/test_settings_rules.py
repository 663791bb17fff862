"""
Tests for domain ordering / nesting rules and the project status cycle.
"""
import pytest

from personal_os.domain.common.errors import NotFoundError, ValidationError
from personal_os.domain.projects.rules import next_project_status, validate_project_name
from personal_os.domain.settings.rules import find_parent, move_up, next_sort_order, siblings
from personal_os.models import Domain


def _domains():
    return [
        Domain(id="work", name="Work", sort_order=0),
        Domain(id="home", name="Home", sort_order=1),
        Domain(id="health", name="Health", sort_order=2),
        Domain(id="clients", name="Clients", parent_id="work", sort_order=0),
        Domain(id="sales", name="Sales", parent_id="work", sort_order=1),
    ]


def test_siblings_are_per_parent_and_ordered():
    assert [d.id for d in siblings(_domains(), None)] == ["work", "home", "health"]
    assert [d.id for d in siblings(_domains(), "work")] == ["clients", "sales"]
    assert siblings(_domains(), "home") == []


def test_move_up_swaps_with_previous_sibling():
    assert move_up(_domains(), "health") == {"home": 2, "health": 1}
    assert move_up(_domains(), "sales") == {"clients": 1, "sales": 0}


def test_move_up_first_is_a_no_op():
    assert move_up(_domains(), "work") == {}
    assert move_up(_domains(), "clients") == {}


def test_move_up_renumbers_equal_sort_orders():
    domains = [Domain(id="a", name="A"), Domain(id="b", name="B"), Domain(id="c", name="C")]
    assert move_up(domains, "c") == {"b": 2, "c": 1}


def test_move_up_missing_domain():
    with pytest.raises(NotFoundError):
        move_up(_domains(), "nope")


def test_find_parent_is_case_insensitive_and_one_level():
    assert find_parent(_domains(), " work ").id == "work"
    with pytest.raises(ValidationError):
        find_parent(_domains(), "Sales")
    with pytest.raises(ValidationError):
        find_parent(_domains(), "Hobbies")


def test_next_sort_order():
    assert next_sort_order(_domains(), None) == 3
    assert next_sort_order(_domains(), "work") == 2
    assert next_sort_order(_domains(), "home") == 0


def test_project_status_cycle():
    assert next_project_status("active") == "paused"
    assert next_project_status("archived") == "active"
    assert next_project_status("unknown") == "active"


def test_project_name_is_required():
    assert validate_project_name("  Launch ") == "Launch"
    with pytest.raises(ValidationError):
        validate_project_name("   ")
    with pytest.raises(ValidationError):
        validate_project_name("x" * 121)
