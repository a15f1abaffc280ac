"""Helpers for persisting user preferences without Qt dependencies.

Updates:
  v0.2.0 - 2026-10-14 - Persist ordering policy and feedback timers when customised.
  v0.1.0 - 2026-10-09 - Persist ranking weights, dropping values equal to defaults.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

from config.settings import (
    DEFAULT_AUTOSAVE_DEBOUNCE_MS,
    DEFAULT_CONFIG_PATH,
    DEFAULT_COPY_FEEDBACK_MS,
    DEFAULT_DELETE_CONFIRM_MS,
    DEFAULT_STORAGE_BACKEND,
    DEFAULT_TOP_PROMPTS_LIMIT,
    OrderingPolicy,
    RankingWeights,
)

_RANKING_DEFAULTS = RankingWeights().model_dump()
_SCALAR_DEFAULTS: dict[str, object] = {
    "storage_backend": DEFAULT_STORAGE_BACKEND,
    "ordering": OrderingPolicy.MANUAL.value,
    "autosave_debounce_ms": DEFAULT_AUTOSAVE_DEBOUNCE_MS,
    "copy_feedback_ms": DEFAULT_COPY_FEEDBACK_MS,
    "delete_confirm_ms": DEFAULT_DELETE_CONFIRM_MS,
    "top_prompts_limit": DEFAULT_TOP_PROMPTS_LIMIT,
    "seed_samples": True,
}


def _normalise_ranking(value: object | None) -> dict[str, float] | None:
    if value is None:
        return None
    if isinstance(value, RankingWeights):
        raw: Mapping[str, object] = value.model_dump()
    elif isinstance(value, Mapping):
        raw = cast("Mapping[str, object]", value)
    else:
        return None
    cleaned: dict[str, float] = {}
    for key, default in _RANKING_DEFAULTS.items():
        candidate = raw.get(key)
        if isinstance(candidate, bool) or not isinstance(candidate, (int, float)):
            continue
        number = float(candidate)
        if number < 0 or number == default:
            continue
        cleaned[key] = number
    return cleaned or None


def _read_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        parsed = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return {}
    if not isinstance(parsed, Mapping):
        return {}
    parsed_mapping = cast("Mapping[object, Any]", parsed)
    return {str(key): value for key, value in parsed_mapping.items()}


def persist_settings_to_config(
    updates: Mapping[str, object | None],
    config_path: Path | None = None,
) -> Path:
    """Persist selected settings to ``config/config.json`` (or *config_path*).

    Ranking weights are merged into any existing ``ranking`` object and only
    values that differ from the defaults are written, so the file stays a
    list of deliberate customisations. Passing ``None`` removes a key.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    config_data = _read_config(path)

    for key, value in updates.items():
        if key == "ranking":
            merged: dict[str, object] = dict(_RANKING_DEFAULTS)
            existing = config_data.get("ranking")
            if isinstance(existing, Mapping):
                merged.update(cast("Mapping[str, object]", existing))
            if isinstance(value, RankingWeights):
                merged.update(value.model_dump())
            elif isinstance(value, Mapping):
                merged.update(cast("Mapping[str, object]", value))
            elif value is None:
                merged = {}
            value = _normalise_ranking(merged)
        elif key in ("data_dir", "db_path"):
            value = str(Path(str(value)).expanduser()) if value else None
        elif key == "ordering" and isinstance(value, OrderingPolicy):
            value = value.value
        if key in _SCALAR_DEFAULTS and value == _SCALAR_DEFAULTS[key]:
            value = None
        if value is not None:
            config_data[key] = value
        else:
            config_data.pop(key, None)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config_data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


__all__ = ["persist_settings_to_config"]
