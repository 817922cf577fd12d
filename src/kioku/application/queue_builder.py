"""
Queue builder for multi-exam study sessions.

Builds one ordered study queue by:
1. Tiering each goal's due cards by declared priority subjects and
   weak-point scores
2. Truncating each goal to its daily quota
3. Interleaving goals round-robin so no exam monopolizes the session
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from itertools import chain

from kioku.application.allocator import QuotaPlan, allocate, group_by_goal
from kioku.application.due_filter import due_items
from kioku.domain import constants as c
from kioku.domain.models import Goal, PrioritySignal, SchedulableItem

logger = logging.getLogger(__name__)

SignalIndex = dict[tuple[str, str], float]


@dataclass
class StudySession:
    """Result of building a study session."""

    items: list[SchedulableItem]  # Final interleaved queue
    quota_total: int  # Sum of daily quotas, for display
    plan: QuotaPlan = field(default_factory=QuotaPlan)


def index_signals(signals: Iterable[PrioritySignal] | None) -> SignalIndex:
    """
    Index weak-point signals by (goal name, subject).

    A missing feed yields an empty index, so every score reads as 0.
    """
    if not signals:
        return {}
    return {(s.goal_name, s.subject): s.priority_score for s in signals}


def priority_score(goal: Goal, subject: str | None, signals: SignalIndex) -> float:
    if subject is None:
        return 0.0
    return signals.get((goal.name, subject), 0.0)


def classify_tier(
    goal: Goal,
    subject: str | None,
    signals: SignalIndex,
    priority_subjects: frozenset[str] | None = None,
) -> int:
    """
    Tier a due card within its goal.

    3 = declared priority subject that is also weak
    2 = declared priority subject only
    1 = weak subject only
    0 = neither
    """
    declared = goal.priority_subjects if priority_subjects is None else priority_subjects
    is_priority = subject is not None and subject in declared
    is_weak = priority_score(goal, subject, signals) > 0

    if is_priority and is_weak:
        return c.TIER_PRIORITY_AND_WEAK
    if is_priority:
        return c.TIER_PRIORITY
    if is_weak:
        return c.TIER_WEAK
    return c.TIER_NONE


def _order_goal_bucket(
    goal: Goal,
    items: Sequence[SchedulableItem],
    signals: SignalIndex,
    declared: frozenset[str],
) -> list[SchedulableItem]:
    def sort_key(item: SchedulableItem):
        tier = classify_tier(goal, item.subject, signals, declared)
        score = priority_score(goal, item.subject, signals)
        return (-tier, -score, item.next_review_at)

    return sorted(items, key=sort_key)


def interleave(buckets: Sequence[Sequence[SchedulableItem]]) -> list[SchedulableItem]:
    """Round-robin merge: one item from each non-exhausted bucket per pass."""
    result: list[SchedulableItem] = []
    longest = max((len(b) for b in buckets), default=0)
    for i in range(longest):
        for bucket in buckets:
            if i < len(bucket):
                result.append(bucket[i])
    return result


def build_queue(
    goals: Sequence[Goal],
    due_by_goal: Mapping[str, Sequence[SchedulableItem]],
    quotas: Mapping[str, int],
    signals: Iterable[PrioritySignal] | None = None,
    priority_subjects: Mapping[str, Iterable[str]] | None = None,
) -> list[SchedulableItem]:
    """
    Build an interleaved, tier-ordered study queue.

    Args:
        goals: Active goals, in the order they take turns in the queue.
        due_by_goal: Goal id -> that goal's due items.
        quotas: Goal id -> daily quota.
        signals: External weak-point scores; None when the feed is unavailable.
        priority_subjects: Extra declared priority subjects per goal id.

    Returns:
        Ordered list of items for one session. With no goals this is the
        plain due order of every supplied item.
    """
    if not goals:
        merged = chain.from_iterable(due_by_goal.values())
        return sorted(merged, key=lambda i: i.next_review_at)

    index = index_signals(signals)
    extra = priority_subjects or {}

    buckets: list[list[SchedulableItem]] = []
    for goal in goals:
        declared = goal.priority_subjects | frozenset(extra.get(goal.id, ()))
        ordered = _order_goal_bucket(goal, due_by_goal.get(goal.id, ()), index, declared)
        quota = quotas.get(goal.id, c.MIN_DAILY_QUOTA)
        buckets.append(ordered[:quota])
        if len(ordered) > quota:
            logger.debug(
                "Goal %s: %d due, truncated to quota %d", goal.name, len(ordered), quota
            )

    return interleave(buckets)


def build_session(
    items: Iterable[SchedulableItem],
    goals: Sequence[Goal],
    now: datetime,
    signals: Iterable[PrioritySignal] | None = None,
    limit: int | None = None,
) -> StudySession:
    """
    Filter, allocate and queue in one call.

    Items whose goal is not among `goals` are left out when goals exist.
    Without goals the session is the plain due set.
    """
    items = list(items)

    if not goals:
        queue = due_items(items, now)
        if limit is not None:
            queue = queue[:limit]
        return StudySession(items=queue, quota_total=len(queue))

    plan = allocate(goals, items, now)
    by_goal = group_by_goal(due_items(items, now))
    due_by_goal = {goal.id: by_goal.get(goal.id, []) for goal in goals}

    queue = build_queue(goals, due_by_goal, plan.quotas, signals)
    if limit is not None:
        queue = queue[:limit]

    logger.info(
        "Built session: %d cards across %d goals (quota total %d)",
        len(queue),
        len(goals),
        plan.total,
    )
    return StudySession(items=queue, quota_total=plan.total, plan=plan)
