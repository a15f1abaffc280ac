"""Factories for constructing prompt stores from validated settings.

Updates:
  v0.2.0 - 2026-10-14 - Pass ordering and timer settings through to the store.
  v0.1.0 - 2026-10-09 - Build backends, stores and ranking services from settings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .prompt_store import PromptStore
from .prompt_store.seed import sample_prompts
from .ranking import PromptRankingService
from .repository import MarkdownDirectoryBackend, PromptBackend, SQLitePromptBackend

if TYPE_CHECKING:  # pragma: no cover - typing only
    from config import PromptBookSettings

    from .clipboard import Clipboard
    from .events import PromptsChangedBus

factory_logger = logging.getLogger("promptbook.factory")

MARKDOWN_SUBDIRECTORY = "prompts"


def build_backend(settings: PromptBookSettings) -> PromptBackend:
    """Return the persistence backend selected by ``settings.storage_backend``."""
    if settings.storage_backend == "sqlite":
        db_path = settings.resolved_db_path
        factory_logger.debug("Using SQLite prompt backend at %s", db_path)
        return SQLitePromptBackend(db_path)
    directory = settings.data_dir / MARKDOWN_SUBDIRECTORY
    factory_logger.debug("Using markdown prompt backend at %s", directory)
    return MarkdownDirectoryBackend(directory)


def build_ranking_service(settings: PromptBookSettings) -> PromptRankingService:
    return PromptRankingService.from_weights(settings.ranking)


def build_prompt_store(
    settings: PromptBookSettings,
    *,
    clipboard: Clipboard | None = None,
    bus: PromptsChangedBus | None = None,
    source_id: str | None = None,
    backend: PromptBackend | None = None,
) -> PromptStore:
    """Create an unloaded :class:`PromptStore`; callers must ``await store.load()``."""
    return PromptStore(
        backend if backend is not None else build_backend(settings),
        bus=bus,
        source_id=source_id,
        clipboard=clipboard,
        ordering=settings.ordering,
        autosave_delay=settings.autosave_debounce_ms / 1000.0,
        copy_feedback_delay=settings.copy_feedback_ms / 1000.0,
        delete_confirm_delay=settings.delete_confirm_ms / 1000.0,
        seed_prompts=sample_prompts if settings.seed_samples else None,
    )


__all__ = ["MARKDOWN_SUBDIRECTORY", "build_backend", "build_prompt_store", "build_ranking_service"]
