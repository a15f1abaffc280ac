"""Events emitted by a prompt store to its views."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StoreEventKind(str, Enum):
    """What happened inside the store."""
    LOADED = "loaded"
    SEEDED = "seeded"
    CHANGED = "changed"
    VIEW_CHANGED = "view_changed"
    RELOADED = "reloaded"
    COPIED = "copied"
    COPY_FAILED = "copy_failed"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"
    LOAD_FAILED = "load_failed"


@dataclass(frozen=True, slots=True)
class StoreEvent:
    kind: StoreEventKind
    prompt_id: str | None = None
    error: Exception | None = None


__all__ = ["StoreEvent", "StoreEventKind"]
