"""
Study statistics derived from review history.

This is a pure computation module with no I/O; "today" is always passed in.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from kioku.application.scheduler import is_success
from kioku.domain import constants as c
from kioku.domain.models import Goal, ReviewEvent


@dataclass
class DailyStudyStat:
    date: date
    total: int
    correct: int


@dataclass
class HeatmapDay:
    date: date
    count: int


@dataclass
class SubjectAccuracy:
    """
    Accuracy of one subject within one exam.

    Attributes:
        exam_name: Goal name, or "" for items without a goal.
        subject: Subject label.
        total: Number of reviews.
        correct: Reviews rated Hard or better.
        rate: correct / total as a percentage.
    """

    exam_name: str
    subject: str
    total: int
    correct: int
    rate: float


def _is_correct(event: ReviewEvent) -> bool:
    return is_success(event.quality)


def _date_range(start: date, end: date) -> Iterable[date]:
    cursor = start
    while cursor <= end:
        yield cursor
        cursor += timedelta(days=1)


class StudyStatsCalculator:
    """
    Computes study statistics from ReviewEvent history.

    Stateless and side-effect free.
    """

    def daily_stats(
        self,
        events: Iterable[ReviewEvent],
        today: date,
        days: int = c.DEFAULT_DAILY_STATS_DAYS,
    ) -> list[DailyStudyStat]:
        """
        Reviews and correct answers per day, zero-filled from `today - days`.
        """
        since = today - timedelta(days=days)
        totals: Counter[date] = Counter()
        correct: Counter[date] = Counter()

        for event in events:
            day = event.reviewed_at.date()
            if since <= day <= today:
                totals[day] += 1
                if _is_correct(event):
                    correct[day] += 1

        return [
            DailyStudyStat(date=day, total=totals[day], correct=correct[day])
            for day in _date_range(since, today)
        ]

    def heatmap(
        self,
        events: Iterable[ReviewEvent],
        today: date,
        days: int = c.DEFAULT_HEATMAP_DAYS,
    ) -> list[HeatmapDay]:
        since = today - timedelta(days=days)
        counts = Counter(
            event.reviewed_at.date()
            for event in events
            if since <= event.reviewed_at.date() <= today
        )
        return [HeatmapDay(date=day, count=counts[day]) for day in _date_range(since, today)]

    def subject_accuracy(
        self,
        events: Iterable[ReviewEvent],
        goals: Sequence[Goal] = (),
    ) -> list[SubjectAccuracy]:
        """
        Per-subject accuracy, weakest subject first.

        Events without a subject are skipped.
        """
        names = {goal.id: goal.name for goal in goals}
        tally: dict[tuple[str, str], list[int]] = defaultdict(lambda: [0, 0])

        for event in events:
            if event.subject is None:
                continue
            exam_name = names.get(event.goal_id, "") if event.goal_id else ""
            entry = tally[(exam_name, event.subject)]
            entry[0] += 1
            if _is_correct(event):
                entry[1] += 1

        result = [
            SubjectAccuracy(
                exam_name=exam_name,
                subject=subject,
                total=total,
                correct=correct,
                rate=correct / total * 100,
            )
            for (exam_name, subject), (total, correct) in tally.items()
        ]
        result.sort(key=lambda s: (s.rate, s.exam_name, s.subject))
        return result

    def study_streak(self, events: Iterable[ReviewEvent], today: date) -> int:
        """
        Consecutive study days ending today, or yesterday if nothing yet today.
        """
        studied = {event.reviewed_at.date() for event in events}
        if today in studied:
            cursor = today
        elif today - timedelta(days=1) in studied:
            cursor = today - timedelta(days=1)
        else:
            return 0

        streak = 0
        while cursor in studied:
            streak += 1
            cursor -= timedelta(days=1)
        return streak

    def today_stats(self, events: Iterable[ReviewEvent], today: date) -> tuple[int, float]:
        """Cards studied today and the correct rate as a percentage."""
        todays = [event for event in events if event.reviewed_at.date() == today]
        if not todays:
            return 0, 0.0
        correct = sum(1 for event in todays if _is_correct(event))
        return len(todays), correct / len(todays) * 100
