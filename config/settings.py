"""Settings management utilities for PromptBook configuration.

Updates:
  v0.3.1 - 2026-10-18 - Read ranking weights on demand for views that outlive a ranking-set.
  v0.3.0 - 2026-10-14 - Add ordering policy and feedback timer settings.
  v0.2.0 - 2026-10-09 - Add nested ranking weights with non-negative validation.
  v0.1.0 - 2026-10-05 - Load settings from env, .env and optional JSON config file.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Literal, cast

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_DATA_DIR = Path.home() / ".config" / "promptbook"
DEFAULT_DB_FILENAME = "promptbook.db"
DEFAULT_CONFIG_PATH = Path("config") / "config.json"
DEFAULT_STORAGE_BACKEND = "markdown"
DEFAULT_AUTOSAVE_DEBOUNCE_MS = 220
DEFAULT_COPY_FEEDBACK_MS = 1000
DEFAULT_DELETE_CONFIRM_MS = 1600
DEFAULT_TOP_PROMPTS_LIMIT = 8

DEFAULT_COPY_WEIGHT = 0.7
DEFAULT_SEARCH_WEIGHT = 0.3
DEFAULT_RECENCY_BOOST = 2.0
DEFAULT_RECENCY_WINDOW_HOURS = 72.0

logger = logging.getLogger("promptbook.settings")


class OrderingPolicy(str, Enum):
    """How the prompt collection is ordered; one policy per deployment."""
    MANUAL = "manual"
    RECENT = "recent"


class SettingsError(Exception):
    """Raised when PromptBook configuration cannot be loaded or validated."""


class RankingWeights(BaseModel):
    """User-configurable weights for the quick-access ranking."""

    copy_weight: float = Field(
        default=DEFAULT_COPY_WEIGHT,
        ge=0,
        description="Score contributed by each clipboard copy.",
    )
    search_weight: float = Field(
        default=DEFAULT_SEARCH_WEIGHT,
        ge=0,
        description="Score contributed by each recorded search match.",
    )
    recency_boost: float = Field(
        default=DEFAULT_RECENCY_BOOST,
        ge=0,
        description="Lift applied to prompts used just now, decaying linearly.",
    )
    recency_window_hours: float = Field(
        default=DEFAULT_RECENCY_WINDOW_HOURS,
        ge=0,
        description="Hours after the last activity during which the lift applies (0 disables).",
    )


class PromptBookSettings(BaseSettings):
    """Application configuration sourced from environment variables or JSON files."""

    storage_backend: Literal["markdown", "sqlite"] = Field(
        default=DEFAULT_STORAGE_BACKEND,
        description="Persistence backend: markdown directory or embedded SQLite database.",
    )
    data_dir: Path = Field(default=DEFAULT_DATA_DIR)
    db_path: Path | None = Field(
        default=None,
        description="SQLite database path; defaults to <data_dir>/promptbook.db.",
    )
    ordering: OrderingPolicy = Field(default=OrderingPolicy.MANUAL)
    autosave_debounce_ms: int = Field(default=DEFAULT_AUTOSAVE_DEBOUNCE_MS)
    copy_feedback_ms: int = Field(default=DEFAULT_COPY_FEEDBACK_MS)
    delete_confirm_ms: int = Field(default=DEFAULT_DELETE_CONFIRM_MS)
    top_prompts_limit: int = Field(default=DEFAULT_TOP_PROMPTS_LIMIT)
    seed_samples: bool = Field(
        default=True,
        description="Write the sample prompts when the library is empty on first load.",
    )
    ranking: RankingWeights = Field(default_factory=RankingWeights)

    # Pydantic v2 settings configuration
    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": "PROMPTBOOK_",
            "env_nested_delimiter": "__",
            "env_file": ".env",
            "env_file_encoding": "utf-8",
            "extra": "ignore",
            "case_sensitive": False,
        },
    )

    @field_validator("data_dir", "db_path", mode="before")
    def _normalise_path(cls, value: Any) -> Path | None:
        """Expand user-relative paths and coerce values to Path instances."""
        if value in (None, ""):
            return None
        return Path(str(value)).expanduser().resolve()

    @field_validator("ordering", mode="before")
    def _normalise_ordering(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("autosave_debounce_ms", "copy_feedback_ms", "delete_confirm_ms")
    def _validate_delay(cls, value: int) -> int:
        """Ensure timer delays are not negative."""
        if value < 0:
            raise ValueError("delays must be zero or greater")
        return value

    @field_validator("top_prompts_limit")
    def _validate_top_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("top_prompts_limit must be greater than zero")
        return value

    @model_validator(mode="after")
    def _default_db_path(self) -> PromptBookSettings:
        if self.data_dir is None:
            raise ValueError("data_dir is required")
        if self.db_path is None:
            self.db_path = self.data_dir / DEFAULT_DB_FILENAME
        return self

    @property
    def resolved_db_path(self) -> Path:
        return self.db_path or (self.data_dir / DEFAULT_DB_FILENAME)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources: init kwargs, environment, .env, JSON config file, secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._json_config_settings_source(settings_cls),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv("PROMPTBOOK_CONFIG_JSON")
            if explicit_path:
                path = Path(explicit_path).expanduser()
                if not path.exists():
                    raise SettingsError(f"Configuration file not found: {path}")
            else:
                path = DEFAULT_CONFIG_PATH
                if not path.exists():
                    return {}
            try:
                raw_contents = path.read_text(encoding="utf-8")
            except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                raise SettingsError(f"Unable to read configuration file: {path}") from exc
            try:
                data = json.loads(raw_contents)
            except json.JSONDecodeError as exc:
                raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
            if not isinstance(data, dict):
                message = f"Configuration file {path} must contain a JSON object"
                raise SettingsError(message)
            mapping_data = cast("Mapping[object, Any]", data)
            known = set(cls.model_fields)
            mapped: dict[str, Any] = {}
            for key, value in mapping_data.items():
                name = str(key)
                if name in known:
                    mapped[name] = value
                else:
                    logger.warning("Ignoring unknown configuration key %r in %s", name, path)
            return mapped

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PromptBookSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PromptBookSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError("Invalid PromptBook configuration") from exc


def config_file_path() -> Path:
    """Return the JSON preferences file: ``PROMPTBOOK_CONFIG_JSON`` or ``config/config.json``."""
    explicit_path = os.getenv("PROMPTBOOK_CONFIG_JSON")
    return Path(explicit_path).expanduser() if explicit_path else DEFAULT_CONFIG_PATH


def current_ranking_weights(fallback: RankingWeights | None = None) -> RankingWeights:
    """Return the ranking weights as configured at this moment.

    Views call this each time they rank, so weights persisted by another
    process (``promptbook ranking-set``) apply without a restart. When the
    configuration cannot be read the *fallback* (or the defaults) is used.
    """
    try:
        return load_settings().ranking
    except SettingsError as exc:
        logger.warning("Keeping previous ranking weights: %s", exc)
        return fallback if fallback is not None else RankingWeights()
