"""
Deterministic priority scoring for tasks.

score = (leverage * 2 + urgency) / effort

All three ratings are integers in [1, 5]. Higher score = higher priority; the
score is the default sort key wherever tasks are listed. No clamping or
rounding happens here, display layers round for presentation only.

The matrix view buckets tasks into four quadrants on the effort (x) and
leverage (y) axes, split at the midpoint rating.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from personal_os.constants import FILTER_ALL, RATING_MAX, RATING_MIN, TASK_ACTIVE_STATUSES
from personal_os.domain.common.errors import ValidationError

if TYPE_CHECKING:
    from personal_os.models import Task

# Ratings at or above this value count as "high" on their matrix axis
QUADRANT_MIDPOINT = 3


def validate_rating(name: str, value: object) -> int:
    """Return value as int if it is an integer rating in [1, 5], else raise ValidationError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer between {RATING_MIN} and {RATING_MAX}.")
    if value < RATING_MIN or value > RATING_MAX:
        raise ValidationError(f"{name} must be between {RATING_MIN} and {RATING_MAX}, got {value}.")
    return value


def score(leverage: int, urgency: int, effort: int) -> float:
    """
    Compute the priority score.

    Raises ValidationError for ratings outside [1, 5], which also covers
    effort == 0 (no ZeroDivisionError ever escapes).

    Examples:
        >>> score(5, 5, 1)
        15.0
        >>> score(1, 1, 5)
        0.6
    """
    leverage = validate_rating("leverage", leverage)
    urgency = validate_rating("urgency", urgency)
    effort = validate_rating("effort", effort)
    return (leverage * 2 + urgency) / effort


def format_score(value: float) -> str:
    return f"{value:.1f}"


class Quadrant(str, Enum):
    QUICK_WINS = "quick_wins"
    BIG_PROJECTS = "big_projects"
    FILL_INS = "fill_ins"
    AVOID = "avoid"

    @property
    def label(self) -> str:
        return QUADRANT_LABELS[self]


QUADRANT_LABELS = {
    Quadrant.QUICK_WINS: "Quick Wins (DO NOW)",
    Quadrant.BIG_PROJECTS: "Big Projects (SCHEDULE)",
    Quadrant.FILL_INS: "Fill-ins (DELEGATE)",
    Quadrant.AVOID: "Avoid (ELIMINATE)",
}

# Display order: top-left, top-right, bottom-left, bottom-right
QUADRANT_ORDER = (Quadrant.QUICK_WINS, Quadrant.BIG_PROJECTS, Quadrant.FILL_INS, Quadrant.AVOID)


def classify(leverage: int, effort: int) -> Quadrant:
    high_leverage = leverage >= QUADRANT_MIDPOINT
    high_effort = effort >= QUADRANT_MIDPOINT
    if high_leverage:
        return Quadrant.BIG_PROJECTS if high_effort else Quadrant.QUICK_WINS
    return Quadrant.AVOID if high_effort else Quadrant.FILL_INS


def build_matrix(tasks: Iterable["Task"], domain_id: Optional[str] = None) -> dict[Quadrant, list["Task"]]:
    """
    Bucket open tasks (todo / in_progress) into quadrants.

    domain_id narrows to one domain; None (or FILTER_ALL) means every domain.
    Each bucket is ordered by priority score, highest first; ties keep input order.
    """
    buckets: dict[Quadrant, list[Task]] = {q: [] for q in QUADRANT_ORDER}
    for task in tasks:
        if task.status not in TASK_ACTIVE_STATUSES:
            continue
        if domain_id and domain_id != FILTER_ALL and task.domain_id != domain_id:
            continue
        buckets[classify(task.leverage, task.effort)].append(task)
    for bucket in buckets.values():
        bucket.sort(key=lambda t: t.priority_score, reverse=True)
    return buckets
