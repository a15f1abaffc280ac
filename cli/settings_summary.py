"""Printable summaries for PromptBook configuration.

Updates:
  v0.1.0 - 2026-10-10 - Render storage, timer and ranking settings for --print-settings.
"""

from __future__ import annotations

from config import PromptBookSettings
from core.factory import MARKDOWN_SUBDIRECTORY

from .utils import describe_path


def print_settings_summary(settings: PromptBookSettings) -> None:
    """Emit a readable summary of the resolved configuration."""
    if settings.storage_backend == "sqlite":
        storage_desc = describe_path(
            settings.resolved_db_path,
            expect_directory=False,
            allow_missing_file=True,
        )
    else:
        storage_desc = describe_path(
            settings.data_dir / MARKDOWN_SUBDIRECTORY,
            expect_directory=True,
        )
    ranking = settings.ranking

    lines = [
        "PromptBook configuration",
        "------------------------",
        f"Storage backend: {settings.storage_backend}",
        f"Data directory: {describe_path(settings.data_dir, expect_directory=True)}",
        f"Prompt storage: {storage_desc}",
        f"Ordering: {settings.ordering.value}",
        f"Seed sample prompts: {'yes' if settings.seed_samples else 'no'}",
        "",
        "Timers",
        f"  Autosave debounce: {settings.autosave_debounce_ms} ms",
        f"  Copy feedback: {settings.copy_feedback_ms} ms",
        f"  Delete confirmation: {settings.delete_confirm_ms} ms",
        "",
        "Ranking",
        f"  Copy weight: {ranking.copy_weight:g}",
        f"  Search weight: {ranking.search_weight:g}",
        f"  Recency boost: {ranking.recency_boost:g}",
        f"  Recency window: {ranking.recency_window_hours:g} h",
        f"  Top prompts shown: {settings.top_prompts_limit}",
    ]
    print("\n".join(lines))


__all__ = ["print_settings_summary"]
