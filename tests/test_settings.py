"""Tests for configuration loading and validation logic.

Updates:
  v0.2.1 - 2026-10-18 - Cover on-demand ranking weight lookup.
  v0.2.0 - 2026-10-14 - Cover ordering policy and timer validation.
  v0.1.0 - 2026-10-05 - Cover JSON/env precedence, nested ranking weights and errors.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pytest import LogCaptureFixture, MonkeyPatch

from config import (
    OrderingPolicy,
    PromptBookSettings,
    RankingWeights,
    SettingsError,
    config_file_path,
    current_ranking_weights,
    load_settings,
)
from config.settings import DEFAULT_DB_FILENAME


def test_defaults_without_configuration(clean_env: Path) -> None:
    """Fall back to documented defaults when nothing is configured."""
    settings = load_settings()

    assert isinstance(settings, PromptBookSettings)
    assert settings.storage_backend == "markdown"
    assert settings.ordering is OrderingPolicy.MANUAL
    assert settings.autosave_debounce_ms == 220
    assert settings.copy_feedback_ms == 1000
    assert settings.delete_confirm_ms == 1600
    assert settings.top_prompts_limit == 8
    assert settings.seed_samples is True
    assert settings.ranking == RankingWeights(
        copy_weight=0.7,
        search_weight=0.3,
        recency_boost=2.0,
        recency_window_hours=72.0,
    )
    assert settings.db_path == settings.data_dir / DEFAULT_DB_FILENAME


def test_env_overrides_with_nested_ranking(monkeypatch: MonkeyPatch, clean_env: Path) -> None:
    """Read prefixed environment variables, including nested ranking weights."""
    monkeypatch.setenv("PROMPTBOOK_STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("PROMPTBOOK_DATA_DIR", str(clean_env / "data"))
    monkeypatch.setenv("PROMPTBOOK_ORDERING", " Recent ")
    monkeypatch.setenv("PROMPTBOOK_RANKING__COPY_WEIGHT", "1.25")

    settings = load_settings()

    assert settings.storage_backend == "sqlite"
    assert settings.data_dir == (clean_env / "data").resolve()
    assert settings.resolved_db_path == (clean_env / "data").resolve() / DEFAULT_DB_FILENAME
    assert settings.ordering is OrderingPolicy.RECENT
    assert settings.ranking.copy_weight == 1.25
    assert settings.ranking.search_weight == 0.3


def test_json_config_from_explicit_path(monkeypatch: MonkeyPatch, clean_env: Path) -> None:
    """Load the JSON file named by PROMPTBOOK_CONFIG_JSON; env still wins."""
    config_path = clean_env / "custom.json"
    config_path.write_text(
        json.dumps(
            {"top_prompts_limit": 5, "ranking": {"recency_boost": 0}, "seed_samples": False}
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("PROMPTBOOK_CONFIG_JSON", str(config_path))
    monkeypatch.setenv("PROMPTBOOK_TOP_PROMPTS_LIMIT", "3")

    settings = load_settings()

    assert settings.top_prompts_limit == 3
    assert settings.ranking.recency_boost == 0.0
    assert settings.seed_samples is False


def test_default_json_config_is_picked_up(clean_env: Path) -> None:
    """Read config/config.json relative to the working directory when present."""
    config_dir = clean_env / "config"
    config_dir.mkdir()
    (config_dir / "config.json").write_text(json.dumps({"ordering": "recent"}), encoding="utf-8")

    assert load_settings().ordering is OrderingPolicy.RECENT


def test_unknown_json_keys_are_ignored_with_warning(
    monkeypatch: MonkeyPatch,
    clean_env: Path,
    caplog: LogCaptureFixture,
) -> None:
    config_path = clean_env / "custom.json"
    config_path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
    monkeypatch.setenv("PROMPTBOOK_CONFIG_JSON", str(config_path))

    with caplog.at_level(logging.WARNING, logger="promptbook.settings"):
        load_settings()

    assert "theme" in caplog.text


def test_dotenv_file_is_read(clean_env: Path) -> None:
    (clean_env / ".env").write_text("PROMPTBOOK_AUTOSAVE_DEBOUNCE_MS=500\n", encoding="utf-8")
    assert load_settings().autosave_debounce_ms == 500


def test_missing_explicit_config_raises(monkeypatch: MonkeyPatch, clean_env: Path) -> None:
    monkeypatch.setenv("PROMPTBOOK_CONFIG_JSON", str(clean_env / "absent.json"))
    with pytest.raises(SettingsError, match="not found"):
        load_settings()


@pytest.mark.parametrize("payload", ["{broken", "[1, 2]"])
def test_invalid_json_config_raises(
    monkeypatch: MonkeyPatch,
    clean_env: Path,
    payload: str,
) -> None:
    config_path = clean_env / "bad.json"
    config_path.write_text(payload, encoding="utf-8")
    monkeypatch.setenv("PROMPTBOOK_CONFIG_JSON", str(config_path))
    with pytest.raises(SettingsError):
        load_settings()


@pytest.mark.parametrize(
    "overrides",
    [
        {"ranking": {"copy_weight": -1}},
        {"autosave_debounce_ms": -5},
        {"top_prompts_limit": 0},
        {"storage_backend": "redis"},
        {"ordering": "alphabetical"},
    ],
)
def test_invalid_values_raise_settings_error(clean_env: Path, overrides: dict[str, object]) -> None:
    with pytest.raises(SettingsError):
        load_settings(**overrides)


def test_current_ranking_weights_follow_persisted_file(clean_env: Path) -> None:
    """Weights are re-read on each call so later edits apply immediately."""
    assert current_ranking_weights() == RankingWeights()

    config_dir = clean_env / "config"
    config_dir.mkdir()
    (config_dir / "config.json").write_text(
        json.dumps({"ranking": {"search_weight": 2}}), encoding="utf-8"
    )

    assert config_file_path() == Path("config") / "config.json"
    assert current_ranking_weights().search_weight == 2.0


def test_current_ranking_weights_fall_back_on_invalid_file(
    monkeypatch: MonkeyPatch,
    clean_env: Path,
    caplog: LogCaptureFixture,
) -> None:
    config_path = clean_env / "bad.json"
    config_path.write_text("{broken", encoding="utf-8")
    monkeypatch.setenv("PROMPTBOOK_CONFIG_JSON", str(config_path))
    previous = RankingWeights(copy_weight=3)

    with caplog.at_level(logging.WARNING, logger="promptbook.settings"):
        assert current_ranking_weights(previous) is previous

    assert config_file_path() == config_path
    assert "Keeping previous ranking weights" in caplog.text
