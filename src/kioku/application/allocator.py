"""
Quota allocator for sharing daily study capacity across exams.

Each goal gets a daily card quota from its remaining backlog, its days to
deadline and its urgency share among all goals. Nothing here raises: past
deadlines, empty goal sets and zero urgency are clamped instead.

This is a pure computation module with no I/O.
"""

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from kioku.application.due_filter import is_due
from kioku.domain import constants as c
from kioku.domain.models import Goal, GoalSnapshot, SchedulableItem

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


@dataclass
class QuotaPlan:
    """Result of a quota allocation."""

    quotas: dict[str, int] = field(default_factory=dict)  # goal_id -> cards/day
    shares: dict[str, float] = field(default_factory=dict)  # goal_id -> urgency share
    snapshots: dict[str, GoalSnapshot] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.quotas.values())

    def quota_for(self, goal_id: str) -> int:
        return self.quotas.get(goal_id, c.MIN_DAILY_QUOTA)


def days_left(deadline: date, now: datetime) -> int:
    """
    Whole days until the deadline, never below 1.

    The deadline counts from midnight at the start of that date, in the
    same timezone as `now`.
    """
    deadline_start = datetime.combine(deadline, time.min, tzinfo=now.tzinfo)
    return max(1, math.ceil((deadline_start - now) / ONE_DAY))


def snapshot_goal(goal: Goal, items: Iterable[SchedulableItem], now: datetime) -> GoalSnapshot:
    """Compute progress figures for one goal from its items."""
    total = mastered = due = 0
    for item in items:
        total += 1
        if item.repetition >= c.MASTERED_REPETITION:
            mastered += 1
        if is_due(item, now):
            due += 1

    return GoalSnapshot(
        goal_id=goal.id,
        days_left=days_left(goal.deadline, now),
        total_items=total,
        mastered_items=mastered,
        due_items=due,
    )


def allocate_snapshots(goals: Sequence[Goal], snapshots: Mapping[str, GoalSnapshot]) -> QuotaPlan:
    """
    Compute daily quotas from precomputed goal snapshots.

    urgency = (1 / days_left) * weight
    share   = urgency / sum(urgency)
    quota   = max(5, ceil(remaining / days_left * share * goal_count))

    The goal_count factor makes total volume grow with the number of goals.
    """
    plan = QuotaPlan()
    if not goals:
        return plan

    urgencies = {
        goal.id: (1 / snapshots[goal.id].days_left) * goal.weight for goal in goals
    }
    urgency_sum = sum(urgencies.values()) or 1
    goal_count = len(goals)

    for goal in goals:
        snapshot = snapshots[goal.id]
        share = urgencies[goal.id] / urgency_sum
        raw_quota = snapshot.remaining_items / snapshot.days_left
        quota = max(c.MIN_DAILY_QUOTA, math.ceil(raw_quota * share * goal_count))

        plan.quotas[goal.id] = quota
        plan.shares[goal.id] = share
        plan.snapshots[goal.id] = snapshot

        logger.debug(
            "Goal %s: %d days left, %d remaining, share %.3f -> quota %d",
            goal.name,
            snapshot.days_left,
            snapshot.remaining_items,
            share,
            quota,
        )

    return plan


def group_by_goal(items: Iterable[SchedulableItem]) -> dict[str | None, list[SchedulableItem]]:
    grouped: dict[str | None, list[SchedulableItem]] = defaultdict(list)
    for item in items:
        grouped[item.goal_id].append(item)
    return dict(grouped)


def allocate(goals: Sequence[Goal], items: Iterable[SchedulableItem], now: datetime) -> QuotaPlan:
    """
    Allocate daily quotas across goals.

    Args:
        goals: Active goals, in display order.
        items: All items; each is counted towards its `goal_id`.
        now: Current time, used for days-left and due counts.

    Returns:
        QuotaPlan keyed by goal id.
    """
    by_goal = group_by_goal(items)
    snapshots = {goal.id: snapshot_goal(goal, by_goal.get(goal.id, []), now) for goal in goals}
    return allocate_snapshots(goals, snapshots)
