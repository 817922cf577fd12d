# Domain Package
from .errors import InvalidRating
from .models import (
    Goal,
    GoalSnapshot,
    PrioritySignal,
    Quality,
    ReviewEvent,
    ReviewResult,
    SchedulableItem,
)
from .ports import StudyData, StudyRepository

__all__ = [
    "Goal",
    "GoalSnapshot",
    "InvalidRating",
    "PrioritySignal",
    "Quality",
    "ReviewEvent",
    "ReviewResult",
    "SchedulableItem",
    "StudyData",
    "StudyRepository",
]
