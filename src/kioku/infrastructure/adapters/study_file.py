"""
Study File Repository: infrastructure adapter for a single YAML/JSON file.

Implements StudyRepository on top of one human-editable document:

    goals:
      - id: boki2
        name: Boki Level 2
        deadline: 2026-11-15
        weight: 2
        priority_subjects: [industrial accounting]
    items:
      - id: card-1
        goal_id: boki2
        subject: industrial accounting
        next_review_at: 2026-10-18T09:00:00Z
    signals:
      - {goal_name: Boki Level 2, subject: industrial accounting, priority_score: 0.8}
    events: []

JSON is valid YAML, so .json files load through the same path.
"""

import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path

import yaml
from pydantic import ValidationError

from kioku.application.schemas import ItemRecord, ReviewEventRecord, StudyFileRecord
from kioku.domain.models import ReviewEvent, SchedulableItem
from kioku.domain.ports import StudyData, StudyRepository

logger = logging.getLogger(__name__)


class StudyFileError(RuntimeError):
    """Raised when a study file cannot be read or fails validation."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"{path}: {reason}")


class StudyFileRepository(StudyRepository):
    """
    Stores goals, items, signals and review events in one file.

    A missing file reads as empty study data and is created on first save.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> StudyData:
        record = self._read()
        return StudyData(
            goals=[g.to_domain() for g in record.goals],
            items=[i.to_domain() for i in record.items],
            signals=[s.to_domain() for s in record.signals],
            events=[e.to_domain() for e in record.events],
        )

    def save_items(self, items: Iterable[SchedulableItem]) -> None:
        record = self._read()
        self._merge_items(record, items)
        self._write(record)
        logger.info(f"Saved {len(record.items)} items to {self.path}")

    def append_event(self, event: ReviewEvent) -> None:
        record = self._read()
        record.events.append(ReviewEventRecord.from_domain(event))
        self._write(record)

    def record_review(self, item: SchedulableItem, event: ReviewEvent) -> None:
        record = self._read()
        self._merge_items(record, [item])
        record.events.append(ReviewEventRecord.from_domain(event))
        self._write(record)
        logger.info(f"Recorded review of {item.id} in {self.path}")

    @staticmethod
    def _merge_items(record: StudyFileRecord, items: Iterable[SchedulableItem]) -> None:
        updated = {item.id: ItemRecord.from_domain(item) for item in items}
        merged = [updated.pop(existing.id, existing) for existing in record.items]
        merged.extend(updated.values())  # previously unseen items go last
        record.items = merged

    def _read(self) -> StudyFileRecord:
        if not self.path.exists():
            logger.debug(f"Study file {self.path} does not exist yet")
            return StudyFileRecord()

        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise StudyFileError(self.path, f"invalid YAML: {e}") from e

        if raw is None:
            return StudyFileRecord()
        if not isinstance(raw, dict):
            raise StudyFileError(self.path, "top level must be a mapping")

        try:
            return StudyFileRecord.model_validate(raw)
        except ValidationError as e:
            raise StudyFileError(self.path, str(e)) from e

    def _write(self, record: StudyFileRecord) -> None:
        data = record.model_dump(mode="json")
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if self.path.suffix == ".json":
            text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        else:
            text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

        # The file holds either the old or the new document, never a partial one
        tmp = self.path.with_name(f".{self.path.name}.tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, self.path)
