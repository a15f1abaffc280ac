"""Configuration helpers for PromptBook.

Updates: v0.2.1 - 2026-10-18 - Export config file location and live ranking weight lookup.
Updates: v0.2.0 - 2026-10-14 - Export ordering policy and timer defaults.
Updates: v0.1.0 - 2026-10-05 - Expose settings loader, ranking weights and error types.
"""

from .settings import (
    DEFAULT_AUTOSAVE_DEBOUNCE_MS,
    DEFAULT_CONFIG_PATH,
    DEFAULT_COPY_FEEDBACK_MS,
    DEFAULT_DATA_DIR,
    DEFAULT_DELETE_CONFIRM_MS,
    DEFAULT_TOP_PROMPTS_LIMIT,
    OrderingPolicy,
    PromptBookSettings,
    RankingWeights,
    SettingsError,
    config_file_path,
    current_ranking_weights,
    load_settings,
)

__all__ = [
    "DEFAULT_AUTOSAVE_DEBOUNCE_MS",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_COPY_FEEDBACK_MS",
    "DEFAULT_DATA_DIR",
    "DEFAULT_DELETE_CONFIRM_MS",
    "DEFAULT_TOP_PROMPTS_LIMIT",
    "OrderingPolicy",
    "PromptBookSettings",
    "RankingWeights",
    "SettingsError",
    "config_file_path",
    "current_ranking_weights",
    "load_settings",
]
