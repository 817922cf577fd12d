from pathlib import Path

from kioku.application.config import resolve_config
from kioku.application.factory import get_study_repository
from kioku.infrastructure.adapters.study_file import StudyFileRepository


def test_defaults_live_under_home(mock_home):
    config = resolve_config()

    assert config.study_file == mock_home / ".config/kioku/study.yaml"
    assert config.port == 8778
    assert config.session_limit is None


def test_overrides_ignore_none(mock_home, tmp_path):
    config = resolve_config({"study_file": tmp_path / "s.yaml", "port": None})

    assert config.study_file == tmp_path / "s.yaml"
    assert config.port == 8778


def test_env_vars(mock_home, monkeypatch):
    monkeypatch.setenv("KIOKU_PORT", "9100")
    monkeypatch.setenv("KIOKU_SESSION_LIMIT", "40")

    config = resolve_config()

    assert config.port == 9100
    assert config.session_limit == 40


def test_toml_file_is_lowest_priority(mock_home, monkeypatch):
    cfg = mock_home / ".config/kioku/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text('host = "0.0.0.0"\nport = 9000\nstudy_file = "~/exams.yaml"\n')
    monkeypatch.setenv("KIOKU_PORT", "9100")

    config = resolve_config()

    assert config.host == "0.0.0.0"
    assert config.port == 9100
    assert config.study_file == Path(mock_home) / "exams.yaml"


def test_factory_returns_file_repository(mock_home, tmp_path):
    repo = get_study_repository(resolve_config({"study_file": tmp_path / "s.yaml"}))

    assert isinstance(repo, StudyFileRepository)
    assert repo.path == tmp_path / "s.yaml"
