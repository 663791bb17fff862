"""
Unit tests for priority scoring and matrix quadrants.
"""
import pytest

from personal_os.domain.common.errors import ValidationError
from personal_os.models import Task
from personal_os.priority import Quadrant, build_matrix, classify, format_score, score


def test_score_formula():
    assert score(5, 5, 1) == 15.0
    assert score(1, 1, 5) == pytest.approx(0.6)
    assert score(3, 3, 3) == 3.0
    assert score(4, 2, 2) == 5.0


def test_score_is_max_and_min_at_extremes():
    """15 is the highest possible score and 0.6 the lowest."""
    values = [score(l, u, e) for l in range(1, 6) for u in range(1, 6) for e in range(1, 6)]
    assert max(values) == 15.0
    assert min(values) == pytest.approx(0.6)


@pytest.mark.parametrize("ratings", [(0, 3, 3), (3, 6, 3), (3, 3, 0), (-1, 3, 3), (3, 3, 10)])
def test_score_rejects_out_of_range(ratings):
    with pytest.raises(ValidationError):
        score(*ratings)


def test_score_rejects_non_integers():
    with pytest.raises(ValidationError):
        score(2.5, 3, 3)
    with pytest.raises(ValidationError):
        score(True, 3, 3)
    with pytest.raises(ValidationError):
        score("3", 3, 3)


def test_format_score_one_decimal():
    assert format_score(score(1, 1, 5)) == "0.6"
    assert format_score(score(2, 1, 3)) == "1.7"


def test_classify_quadrants_split_at_three():
    assert classify(leverage=3, effort=2) == Quadrant.QUICK_WINS
    assert classify(leverage=3, effort=3) == Quadrant.BIG_PROJECTS
    assert classify(leverage=2, effort=2) == Quadrant.FILL_INS
    assert classify(leverage=2, effort=3) == Quadrant.AVOID
    assert classify(leverage=5, effort=1) == Quadrant.QUICK_WINS
    assert classify(leverage=1, effort=5) == Quadrant.AVOID


def test_build_matrix_only_open_tasks_sorted_by_score():
    tasks = [
        Task(id="a", title="A", leverage=4, urgency=1, effort=1),
        Task(id="b", title="B", leverage=5, urgency=5, effort=2),
        Task(id="c", title="C", leverage=5, urgency=5, effort=1, status="done"),
        Task(id="d", title="D", leverage=1, urgency=1, effort=5, status="in_progress"),
        Task(id="e", title="E", leverage=4, urgency=4, effort=4, status="archived"),
    ]
    buckets = build_matrix(tasks)

    assert [t.id for t in buckets[Quadrant.QUICK_WINS]] == ["a", "b"]  # 9.0, 7.5
    assert [t.id for t in buckets[Quadrant.AVOID]] == ["d"]
    assert buckets[Quadrant.BIG_PROJECTS] == []
    assert buckets[Quadrant.FILL_INS] == []


def test_build_matrix_domain_filter():
    tasks = [
        Task(id="a", title="A", domain_id="work"),
        Task(id="b", title="B", domain_id="home"),
    ]
    buckets = build_matrix(tasks, domain_id="work")
    assert [t.id for q in buckets.values() for t in q] == ["a"]

    everything = build_matrix(tasks, domain_id="all")
    assert sum(len(q) for q in everything.values()) == 2


def test_priority_score_is_derived_from_ratings():
    task = Task(id="a", title="A", leverage=4, urgency=3, effort=2)
    assert task.priority_score == 5.5
