"""Shared persistence helpers and the backend protocol.

Updates:
  v0.2.0 - 2026-10-11 - Add atomic file writes and slug helpers for markdown storage.
  v0.1.0 - 2026-10-06 - Extract backend protocol and SQLite connection helper.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from models.prompt_model import Prompt

logger = logging.getLogger("promptbook.repository")

_SLUG_MAX_CHARS = 80
_UNTITLED_SLUG = "untitled"


@runtime_checkable
class PromptBackend(Protocol):
    """Whole-collection persistence used by :class:`core.prompt_store.PromptStore`.

    ``load`` raises :class:`core.exceptions.PersistenceReadError` and ``save``
    raises :class:`core.exceptions.PersistenceWriteError`. ``save`` replaces
    the stored collection in one step and records *source* as the last writer.
    """

    def load(self) -> list[Prompt]: ...

    def save(self, prompts: Sequence[Prompt], *, source: str) -> None: ...

    def last_writer(self) -> str | None: ...

    def watch_paths(self) -> list[Path]: ...


def ensure_directory(path: Path) -> None:
    """Ensure the parent directory of *path* exists."""
    path.parent.mkdir(parents=True, exist_ok=True)


def connect(db_path: Path) -> sqlite3.Connection:
    """Return a configured SQLite connection."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL;")
    conn.execute("PRAGMA synchronous = NORMAL;")
    return conn


def atomic_write(path: Path, data: bytes) -> None:
    """Write *data* to a sibling temp file, fsync it, then rename over *path*."""
    tmp = path.with_name(f"{path.name}.tmp")
    with tmp.open("wb") as handle:
        handle.write(data)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp, path)


def slugify(title: str) -> str:
    """Return a lowercase ASCII file stem derived from *title*."""
    parts: list[str] = []
    previous_dash = False
    for char in title.lower():
        if char.isascii() and char.isalnum():
            parts.append(char)
            previous_dash = False
        elif not previous_dash:
            parts.append("-")
            previous_dash = True
    slug = "".join(parts).strip("-")
    if not slug:
        return _UNTITLED_SLUG
    return slug[:_SLUG_MAX_CHARS].rstrip("-")


def unslug(stem: str) -> str:
    """Return a readable title for a file stem (``bug-triage`` -> ``Bug triage``)."""
    text = stem.replace("-", " ")
    return text[:1].upper() + text[1:]


def unique_filename(slug: str, used: set[str]) -> str:
    """Return ``<slug>.md`` or the first free ``<slug>-N.md`` and reserve it."""
    candidate = f"{slug}.md"
    counter = 2
    while candidate in used:
        candidate = f"{slug}-{counter}.md"
        counter += 1
    used.add(candidate)
    return candidate


__all__ = [
    "PromptBackend",
    "atomic_write",
    "connect",
    "ensure_directory",
    "logger",
    "slugify",
    "unique_filename",
    "unslug",
]
