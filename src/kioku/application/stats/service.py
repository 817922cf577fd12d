"""
Study Stats Service: application layer orchestrator.

Loads review history from the repository and summarizes it with the
calculator.
"""

import logging
from dataclasses import dataclass
from datetime import date

from kioku.domain import constants as c
from kioku.domain.ports import StudyRepository

from .study_stats import DailyStudyStat, HeatmapDay, StudyStatsCalculator, SubjectAccuracy

logger = logging.getLogger(__name__)


@dataclass
class StudySummary:
    """Headline numbers for a dashboard."""

    cards_studied_today: int
    correct_rate_today: float
    streak: int
    daily: list[DailyStudyStat]
    weakest_subjects: list[SubjectAccuracy]
    heatmap: list[HeatmapDay]

    @property
    def active_days(self) -> int:
        return sum(1 for day in self.heatmap if day.count)


class StudyStatsService:
    """
    Application service for review-history statistics.

    Depends on the StudyRepository abstraction, not a concrete adapter.
    """

    def __init__(
        self,
        repo: StudyRepository,
        calculator: StudyStatsCalculator | None = None,
    ):
        """
        Args:
            repo: The repository (port) holding review history.
            calculator: Optional custom calculator; uses default if not provided.
        """
        self._repo = repo
        self._calc = calculator or StudyStatsCalculator()

    def summarize(
        self,
        today: date,
        days: int = c.DEFAULT_DAILY_STATS_DAYS,
        weakest: int = 5,
        heatmap_days: int = c.DEFAULT_HEATMAP_DAYS,
    ) -> StudySummary:
        """
        Build a dashboard summary for `today`.

        Args:
            today: The date to summarize up to.
            days: Window for the daily series.
            weakest: How many of the weakest subjects to include.
            heatmap_days: Window for the activity heatmap.
        """
        data = self._repo.load()
        events = data.events
        logger.debug("Summarizing %d review events", len(events))

        studied, rate = self._calc.today_stats(events, today)
        return StudySummary(
            cards_studied_today=studied,
            correct_rate_today=rate,
            streak=self._calc.study_streak(events, today),
            daily=self._calc.daily_stats(events, today, days),
            weakest_subjects=self._calc.subject_accuracy(events, data.goals)[:weakest],
            heatmap=self._calc.heatmap(events, today, heatmap_days),
        )
