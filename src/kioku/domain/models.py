"""
Domain models for the scheduling engine.

These are pure data structures with no I/O or external dependencies.
Every record is an immutable value snapshot; the engine returns new
values instead of mutating the ones it receives.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import IntEnum

from .constants import DEFAULT_EASE_FACTOR, DEFAULT_GOAL_WEIGHT


class Quality(IntEnum):
    """
    Review rating on the 0-5 SM-2 scale.

    0-1 fail with no recall, 2 fails but the answer came back on sight,
    3-5 succeed with decreasing effort.
    """

    BLACKOUT = 0
    AGAIN = 1
    HARD_FAIL = 2
    HARD = 3
    GOOD = 4
    EASY = 5


@dataclass(frozen=True)
class SchedulableItem:
    """
    Scheduling state of a single card.

    Attributes:
        id: Stable item identifier.
        next_review_at: The item is due once `now >= next_review_at`.
        goal_id: Goal (exam) the item belongs to, if any.
        subject: Subject label used for queue tiering.
        interval: Days until due; values below 1 are fractions of a day.
        repetition: Consecutive successful graduations since the last reset.
        ease_factor: Interval growth multiplier, never below 1.3.
        lapse_interval: Interval held just before the most recent lapse.
    """

    id: str
    next_review_at: datetime
    goal_id: str | None = None
    subject: str | None = None
    interval: float = 0.0
    repetition: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    lapse_interval: float | None = None


@dataclass(frozen=True)
class ReviewResult:
    """Output of one state-machine transition."""

    interval: float
    repetition: int
    ease_factor: float


@dataclass(frozen=True)
class Goal:
    """
    A deadline-bound exam competing for daily study capacity.

    Attributes:
        id: Goal identifier; items reference it through `goal_id`.
        name: Display name, also the key of external weak-point signals.
        deadline: Exam date.
        weight: Relative importance, positive.
        priority_subjects: Subjects the learner declared as priorities.
    """

    id: str
    name: str
    deadline: date
    weight: float = DEFAULT_GOAL_WEIGHT
    priority_subjects: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class GoalSnapshot:
    """Derived per-goal progress figures. Never stored."""

    goal_id: str
    days_left: int
    total_items: int
    mastered_items: int
    due_items: int

    @property
    def remaining_items(self) -> int:
        return self.total_items - self.mastered_items

    @property
    def mastery_ratio(self) -> float:
        if self.total_items == 0:
            return 0.0
        return self.mastered_items / self.total_items


@dataclass(frozen=True)
class PrioritySignal:
    """Weak-point score for one subject of one goal, produced externally."""

    goal_name: str
    subject: str
    priority_score: float


@dataclass(frozen=True)
class ReviewEvent:
    """
    A single answered review, recorded by the caller after `apply_review`.

    Attributes:
        item_id: The item that was reviewed.
        quality: Rating given (0-5).
        reviewed_at: When the answer was given.
        goal_id: Goal of the item at review time.
        subject: Subject of the item at review time.
    """

    item_id: str
    quality: int
    reviewed_at: datetime
    goal_id: str | None = None
    subject: str | None = None
