"""SQLite-backed prompt persistence with whole-table replace semantics.

Updates:
  v0.1.2 - 2026-10-18 - Treat out-of-range stored values as malformed rows.
  v0.1.1 - 2026-10-12 - Store the last writer in a meta table for change watchers.
  v0.1.0 - 2026-10-07 - Initial embedded database backend.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from core.exceptions import PersistenceReadError, PersistenceWriteError
from models.prompt_model import Prompt, normalize_title

from .base import connect as _connect, ensure_directory as _ensure_directory, logger

if TYPE_CHECKING:
    from collections.abc import Sequence

_SCHEMA = """
CREATE TABLE IF NOT EXISTS prompts (
    id TEXT PRIMARY KEY,
    position INTEGER NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    copy_count INTEGER NOT NULL DEFAULT 0,
    search_count INTEGER NOT NULL DEFAULT 0,
    last_copied_at TEXT,
    last_matched_search_at TEXT,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""


class SQLitePromptBackend:
    """Persist the prompt collection in a single SQLite table."""

    _COLUMNS: ClassVar[Sequence[str]] = (
        "id",
        "position",
        "title",
        "content",
        "copy_count",
        "search_count",
        "last_copied_at",
        "last_matched_search_at",
        "updated_at",
    )

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._schema_ready = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _open(self) -> sqlite3.Connection:
        _ensure_directory(self._db_path)
        conn = _connect(self._db_path)
        if not self._schema_ready:
            try:
                conn.executescript(_SCHEMA)
            except sqlite3.Error:
                conn.close()
                raise
            self._schema_ready = True
        return conn

    def load(self) -> list[Prompt]:
        """Return prompts ordered by their stored position."""
        try:
            conn = self._open()
            try:
                rows = conn.execute(
                    f"SELECT {', '.join(self._COLUMNS)} FROM prompts ORDER BY position ASC;"
                ).fetchall()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceReadError(f"Failed to load prompts from {self._db_path}") from exc
        try:
            return [self._row_to_prompt(row) for row in rows]
        except (TypeError, ValueError, OverflowError) as exc:
            raise PersistenceReadError(f"Malformed prompt row in {self._db_path}") from exc

    def save(self, prompts: Sequence[Prompt], *, source: str) -> None:
        """Replace every stored prompt inside one transaction."""
        placeholders = ", ".join(f":{column}" for column in self._COLUMNS)
        query = f"INSERT INTO prompts ({', '.join(self._COLUMNS)}) VALUES ({placeholders});"
        payload = [self._prompt_to_row(prompt, position) for position, prompt in enumerate(prompts)]
        try:
            conn = self._open()
            try:
                with conn:
                    conn.execute("DELETE FROM prompts;")
                    conn.executemany(query, payload)
                    conn.execute(
                        "INSERT INTO meta (key, value) VALUES ('last_writer', ?) "
                        "ON CONFLICT(key) DO UPDATE SET value = excluded.value;",
                        (source,),
                    )
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceWriteError(f"Failed to save prompts to {self._db_path}") from exc
        logger.debug("Saved %d prompts to %s", len(payload), self._db_path)

    def last_writer(self) -> str | None:
        try:
            conn = self._open()
            try:
                row = conn.execute("SELECT value FROM meta WHERE key = 'last_writer';").fetchone()
            finally:
                conn.close()
        except (OSError, sqlite3.Error):
            return None
        return str(row["value"]) if row and row["value"] else None

    def watch_paths(self) -> list[Path]:
        return [self._db_path, self._db_path.with_name(f"{self._db_path.name}-wal")]

    @staticmethod
    def _prompt_to_row(prompt: Prompt, position: int) -> dict[str, object]:
        record = prompt.to_record()
        return {
            "id": prompt.id,
            "position": position,
            "title": normalize_title(prompt.title),
            "content": prompt.content,
            "copy_count": prompt.copy_count,
            "search_count": prompt.search_count,
            "last_copied_at": record["lastCopiedAt"],
            "last_matched_search_at": record["lastMatchedSearchAt"],
            "updated_at": record["updatedAt"],
        }

    @staticmethod
    def _row_to_prompt(row: sqlite3.Row) -> Prompt:
        return Prompt.from_record(
            {
                "id": row["id"],
                "title": row["title"],
                "content": row["content"],
                "copyCount": row["copy_count"],
                "searchCount": row["search_count"],
                "lastCopiedAt": row["last_copied_at"],
                "lastMatchedSearchAt": row["last_matched_search_at"],
                "updatedAt": row["updated_at"],
            }
        )


__all__ = ["SQLitePromptBackend"]
