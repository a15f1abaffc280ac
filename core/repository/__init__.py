"""Persistence backends for the prompt collection.

Updates:
  v0.2.0 - 2026-10-11 - Add markdown directory backend alongside SQLite.
  v0.1.0 - 2026-10-07 - Begin repository package with backend protocol and SQLite store.
"""

from __future__ import annotations

from .base import PromptBackend, slugify, unslug
from .files import INDEX_FILENAME, MarkdownDirectoryBackend
from .sqlite import SQLitePromptBackend

__all__ = [
    "INDEX_FILENAME",
    "MarkdownDirectoryBackend",
    "PromptBackend",
    "SQLitePromptBackend",
    "slugify",
    "unslug",
]
