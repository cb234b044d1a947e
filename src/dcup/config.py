"""Centralized configuration: Pydantic BaseSettings with TOML + dotenv sources.

Settings live in config.toml. Environment variables override it using the
``DCUP_`` prefix and ``__`` as the nested delimiter (e.g.
``DCUP_CONTAINER__ENGINE=docker``).

Priority (highest wins): init args > env vars > .env > config.toml

The lifecycle controller never reads the singleton itself; callers pass a
Settings object in, so tests can run several configurations side by side::

    from dcup.config import get_settings

    s = get_settings()
    print(s.container.engine)
"""

from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# ---------------------------------------------------------------------------
# Sub-models (each maps to a [section] in config.toml)
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_FILES = [".devcontainer/devcontainer.json", ".devcontainer.json"]


class _StrictModel(BaseModel):
    """Base for all config sub-models; rejects unknown keys so typos fail loudly."""

    model_config = {"extra": "forbid"}


class ContainerConfig(_StrictModel):
    engine: Literal["docker", "podman"] = "podman"
    engine_path: str | None = None  # executable passed as --docker-path; None → engine name
    cli_prefix: list[str] = ["devcontainer"]  # e.g. ["npx", "@devcontainers/cli"]
    dotfiles_repository: str | None = None
    config_files: list[str] = DEFAULT_CONFIG_FILES  # searched in this order per directory

    @field_validator("cli_prefix")
    @classmethod
    def validate_cli_prefix(cls, v: list[str]) -> list[str]:
        if not v or not all(part.strip() for part in v):
            raise ValueError("cli_prefix must name at least one non-empty argument")
        return v

    @field_validator("config_files")
    @classmethod
    def validate_config_files(cls, v: list[str]) -> list[str]:
        for name in v:
            if Path(name).is_absolute():
                msg = f"config_files entries must be relative: {name}"
                raise ValueError(msg)
        return v

    @property
    def engine_executable(self) -> str:
        return self.engine_path or self.engine


class EditorConfig(_StrictModel):
    name: str = "console"  # editor plugin to drive
    open_command: list[str] | None = None  # e.g. ["emacsclient", "-n"]; address is appended
    remote_prefix: str = ""  # "/" turns podman:u@id:/w into TRAMP's /podman:u@id:/w


class LoggingConfig(_StrictModel):
    level: str = "INFO"
    log_dir: str | None = None  # build run logs; None → ~/.cache/dcup/logs

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.upper()


class StateConfig(_StrictModel):
    registry_file: str | None = None  # None → ~/.cache/dcup/sessions.json
    persist: bool = True


# ---------------------------------------------------------------------------
# Root Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        toml_file="config.toml",
        env_file=".env",
        env_prefix="DCUP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    container: ContainerConfig = ContainerConfig()
    editor: EditorConfig = EditorConfig()
    logging: LoggingConfig = LoggingConfig()
    state: StateConfig = StateConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init > env vars > .env > config.toml > file secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    # --- Computed properties ---

    @cached_property
    def cache_dir(self) -> Path:
        return Path.home() / ".cache" / "dcup"

    @cached_property
    def log_dir(self) -> Path | None:
        if self.logging.log_dir:
            return Path(self.logging.log_dir).expanduser()
        return self.cache_dir / "logs"

    @cached_property
    def registry_file(self) -> Path | None:
        if not self.state.persist:
            return None
        if self.state.registry_file:
            return Path(self.state.registry_file).expanduser()
        return self.cache_dir / "sessions.json"


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_settings: Settings | None = None


def get_settings() -> Settings:
    """Lazy cached singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached singleton (for tests)."""
    global _settings
    _settings = None
