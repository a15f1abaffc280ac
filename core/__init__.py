"""Core service layer for PromptBook.

Updates:
  v0.2.0 - 2026-10-14 - Export factories and the prompts-changed bus.
  v0.1.0 - 2026-10-08 - Surface PromptStore, ranking service and backends.
"""

from .clipboard import Clipboard, StreamClipboard
from .events import (
    EventHub,
    PromptsChangedBus,
    PromptsChangedEvent,
    Subscription,
    prompts_changed_bus,
)
from .exceptions import (
    ClipboardError,
    PersistenceError,
    PersistenceReadError,
    PersistenceWriteError,
    PromptBookError,
    PromptNotFoundError,
    PromptStoreError,
)
from .factory import build_backend, build_prompt_store, build_ranking_service
from .prompt_store import PromptStore, StoreEvent, StoreEventKind, StoreState, ViewState
from .ranking import PromptRankingService
from .repository import MarkdownDirectoryBackend, PromptBackend, SQLitePromptBackend

__all__ = [
    "Clipboard",
    "ClipboardError",
    "EventHub",
    "MarkdownDirectoryBackend",
    "PersistenceError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "PromptBackend",
    "PromptBookError",
    "PromptNotFoundError",
    "PromptRankingService",
    "PromptStore",
    "PromptStoreError",
    "PromptsChangedBus",
    "PromptsChangedEvent",
    "SQLitePromptBackend",
    "StoreEvent",
    "StoreEventKind",
    "StoreState",
    "StreamClipboard",
    "Subscription",
    "ViewState",
    "build_backend",
    "build_prompt_store",
    "build_ranking_service",
    "prompts_changed_bus",
]
