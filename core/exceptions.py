"""Common exception classes for the core package.

All exceptions ultimately inherit from :class:`PromptBookError`, allowing
callers to catch a single base class for any library failure while still
distinguishing persistence, clipboard, and store errors when needed.

Updates:
  v0.2.0 - 2026-10-12 - Split persistence failures into read/write errors.
  v0.1.0 - 2026-10-05 - Created module with store, persistence and clipboard errors.
"""

from __future__ import annotations


class PromptBookError(Exception):
    """Base exception for PromptBook failures."""


class PromptStoreError(PromptBookError):
    """Raised when a store operation is invalid for the current state."""


class PromptNotFoundError(PromptStoreError):
    """Raised when a prompt cannot be located in the in-memory collection."""


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PersistenceError(PromptBookError):
    """Base class for persistence backend failures."""


class PersistenceReadError(PersistenceError):
    """Raised when stored prompts are unreadable or corrupt."""


class PersistenceWriteError(PersistenceError):
    """Raised when a collection snapshot cannot be written."""


class ClipboardError(PromptBookError):
    """Raised when text cannot be written to the clipboard."""


__all__ = [
    "ClipboardError",
    "PersistenceError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "PromptBookError",
    "PromptNotFoundError",
    "PromptStoreError",
]
