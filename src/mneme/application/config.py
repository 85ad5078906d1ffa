from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mneme.domain.constants import (
    DEFAULT_BATCH_SIZE,
    MASTERY_THRESHOLD,
    MAX_ANSWER_HISTORY,
    RECENT_WINDOW,
)


class AppConfig(BaseSettings):
    """
    Configuration model for mneme.
    Supports loading from:
    1. Environment variables (MNEME_*)
    2. Config file (~/.config/mneme/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEME_",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/mneme")
    storage_file: Path | None = None

    # Storage backend
    storage: Literal["file", "memory"] = "file"

    # Queue
    batch_size: int = DEFAULT_BATCH_SIZE
    mastery_threshold: int = MASTERY_THRESHOLD
    target_mastery_count: int | None = None
    mode: Literal["word-to-meaning", "meaning-to-word"] = "word-to-meaning"

    # Analytics
    max_answer_history: int = MAX_ANSWER_HISTORY
    recent_window: int = RECENT_WINDOW

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

        # Path.home() is re-read so a patched HOME is honoured
        toml_files = [
            Path.home() / ".config/mneme/config.toml",
            Path.home() / ".mneme.toml",
        ]
        toml_file = next((f for f in toml_files if f.exists()), None)

        # Earlier sources win: explicit overrides > env > file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("storage_file", mode="before")
    @classmethod
    def resolve_storage_file(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @field_validator("batch_size", "mastery_threshold", "max_answer_history", "recent_window")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("target_mastery_count")
    @classmethod
    def target_not_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("must not be negative")
        return v


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mneme/config.toml (if exists)
    3. Environment variables (MNEME_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.storage_file is None:
        config.storage_file = config.data_dir / "storage.json"

    return config
