from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


def config_dir() -> Path:
    return Path.home() / ".config/kioku"


class AppConfig(BaseSettings):
    """
    Configuration model for kioku.
    Supports loading from:
    1. Environment variables (KIOKU_*)
    2. Config file (~/.config/kioku/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="KIOKU_",
        extra="ignore",
    )

    # Paths
    study_file: Path = Field(default_factory=lambda: config_dir() / "study.yaml")
    log_dir: Path = Field(default_factory=lambda: config_dir() / "logs")

    # Session
    session_limit: int | None = Field(default=None, ge=1)

    # Server
    host: str = "127.0.0.1"
    port: int = 8778

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = config_dir() / "config.toml"

        # Overrides first so CLI flags win, then env, then the file.
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("study_file", "log_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/kioku/config.toml (if exists)
    3. Environment variables (KIOKU_*)
    4. cli_overrides (None values are ignored)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
