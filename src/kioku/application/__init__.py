# Application Package
from .allocator import QuotaPlan, allocate, allocate_snapshots, days_left, snapshot_goal
from .due_filter import due_items, is_due
from .queue_builder import StudySession, build_queue, build_session, classify_tier
from .scheduler import advance, apply_review, initial_ease_factor, new_item, quality_label

__all__ = [
    "QuotaPlan",
    "StudySession",
    "advance",
    "allocate",
    "allocate_snapshots",
    "apply_review",
    "build_queue",
    "build_session",
    "classify_tier",
    "days_left",
    "due_items",
    "initial_ease_factor",
    "is_due",
    "new_item",
    "quality_label",
    "snapshot_goal",
]
