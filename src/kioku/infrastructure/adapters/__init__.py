from .study_file import StudyFileError, StudyFileRepository

__all__ = ["StudyFileError", "StudyFileRepository"]
