# Application Stats Package
from .service import StudyStatsService, StudySummary
from .study_stats import DailyStudyStat, HeatmapDay, StudyStatsCalculator, SubjectAccuracy

__all__ = [
    "DailyStudyStat",
    "HeatmapDay",
    "StudyStatsCalculator",
    "StudyStatsService",
    "StudySummary",
    "SubjectAccuracy",
]
