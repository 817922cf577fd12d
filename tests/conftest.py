from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml


@pytest.fixture
def now():
    """Fixed review instant; the engine never reads the clock itself."""
    return datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def study_file(tmp_path) -> Path:
    """A small study file with two exams, a few items and weak-point signals."""
    path = tmp_path / "study.yaml"
    data = {
        "goals": [
            {
                "id": "boki",
                "name": "Boki 2",
                "deadline": "2026-10-28",
                "weight": 1,
                "priority_subjects": ["industrial"],
            },
            {"id": "fp", "name": "FP 3", "deadline": "2026-10-23", "weight": 2},
        ],
        "items": [
            {
                "id": "b1",
                "goal_id": "boki",
                "subject": "commercial",
                "next_review_at": "2026-10-18T08:00:00Z",
            },
            {
                "id": "b2",
                "goal_id": "boki",
                "subject": "industrial",
                "next_review_at": "2026-10-18T10:00:00Z",
            },
            {
                "id": "f1",
                "goal_id": "fp",
                "subject": "tax",
                "next_review_at": "2026-10-18T09:00:00Z",
                "interval": 10,
                "repetition": 3,
                "ease_factor": 2.5,
            },
            {
                "id": "later",
                "goal_id": "fp",
                "subject": "tax",
                "next_review_at": "2026-10-25T09:00:00Z",
                "interval": 7,
                "repetition": 2,
            },
        ],
        "signals": [{"goal_name": "FP 3", "subject": "tax", "priority_score": 0.7}],
        "events": [],
    }
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path
