"""
Repository Factory
Centralizes the logic for selecting the study data adapter.
"""

from kioku.application.config import AppConfig
from kioku.domain.ports import StudyRepository
from kioku.infrastructure.adapters.study_file import StudyFileRepository


def get_study_repository(config: AppConfig) -> StudyRepository:
    """
    Returns the StudyRepository for the configured study file.
    """
    return StudyFileRepository(config.study_file)
