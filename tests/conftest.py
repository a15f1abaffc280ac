"""Pytest configuration for shared test fixtures and environment hooks.

Updates:
  v0.2.1 - 2026-10-18 - Let the fake backend raise arbitrary errors from load.
  v0.2.0 - 2026-10-16 - Add in-memory backend and clipboard doubles for store tests.
  v0.1.0 - 2026-10-05 - Force Qt offscreen platform for headless test runs.
"""

from __future__ import annotations

import os
import threading
from typing import TYPE_CHECKING, Any

import pytest

from core.exceptions import ClipboardError, PersistenceReadError, PersistenceWriteError
from models.prompt_model import normalize_title

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from models.prompt_model import Prompt


def pytest_configure(config: Any) -> None:
    """Ensure Qt uses the offscreen platform during tests to avoid GUI aborts."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeBackend:
    """In-memory backend recording every save."""

    def __init__(self, prompts: Sequence[Prompt] | None = None) -> None:
        self._lock = threading.Lock()
        self._prompts = [prompt.clone() for prompt in prompts or []]
        self.writer: str | None = None
        self.save_calls = 0
        self.load_calls = 0
        self.fail_load = False
        self.fail_save = False
        self.load_error: Exception | None = None

    @property
    def stored(self) -> list[Prompt]:
        with self._lock:
            return [prompt.clone() for prompt in self._prompts]

    def replace(self, prompts: Sequence[Prompt], *, source: str = "other-window") -> None:
        """Simulate another writer replacing the collection."""
        with self._lock:
            self._prompts = [prompt.clone() for prompt in prompts]
            self.writer = source

    def load(self) -> list[Prompt]:
        with self._lock:
            self.load_calls += 1
            if self.fail_load:
                raise PersistenceReadError("disk unreadable")
            if self.load_error is not None:
                raise self.load_error
            return [prompt.clone() for prompt in self._prompts]

    def save(self, prompts: Sequence[Prompt], *, source: str) -> None:
        with self._lock:
            self.save_calls += 1
            if self.fail_save:
                raise PersistenceWriteError("disk full")
            stored = []
            for prompt in prompts:
                copy = prompt.clone()
                copy.title = normalize_title(copy.title)
                stored.append(copy)
            self._prompts = stored
            self.writer = source

    def last_writer(self) -> str | None:
        return self.writer

    def watch_paths(self) -> list[Path]:
        return []


class FakeClipboard:
    """Clipboard double collecting written text."""

    def __init__(self) -> None:
        self.texts: list[str] = []
        self.fail = False

    async def write_text(self, text: str) -> None:
        if self.fail:
            raise ClipboardError("clipboard locked")
        self.texts.append(text)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run in an empty directory with no PromptBook environment overrides."""
    for name in list(os.environ):
        if name.startswith("PROMPTBOOK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
