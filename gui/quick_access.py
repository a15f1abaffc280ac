"""Quick-access window: search box plus the top-ranked prompts.

Typing filters the library, Enter records the search, activating a row copies
the prompt. Ctrl+S forces a save; losing focus or closing the window flushes
pending edits.

Updates:
  v0.2.1 - 2026-10-18 - Rank with the persisted weights and refresh when preferences change.
  v0.2.0 - 2026-10-16 - Flush on deactivation and show "Saved" feedback for Ctrl+S.
  v0.1.0 - 2026-10-15 - Introduce quick-access window bound to a prompt store.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from PySide6.QtCore import QEvent, QFileSystemWatcher, Qt, Signal
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import QLabel, QLineEdit, QListWidget, QListWidgetItem, QVBoxLayout, QWidget

from config import current_ranking_weights
from core.prompt_store import StoreEventKind

from .toast import show_toast

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable, Coroutine
    from pathlib import Path

    from PySide6.QtGui import QCloseEvent

    from config import PromptBookSettings
    from core.prompt_store import PromptStore, StoreEvent
    from core.ranking import RankingWeightsLike
    from models.prompt_model import Prompt

logger = logging.getLogger("promptbook.gui.quick_access")

PROMPT_ID_ROLE = Qt.ItemDataRole.UserRole
COPIED_BADGE = "Copied"

_REFRESH_EVENTS = frozenset(
    {
        StoreEventKind.LOADED,
        StoreEventKind.SEEDED,
        StoreEventKind.CHANGED,
        StoreEventKind.VIEW_CHANGED,
        StoreEventKind.RELOADED,
        StoreEventKind.COPIED,
    }
)


class QuickAccessWindow(QWidget):
    """Compact window listing top-ranked prompts or search results."""

    closed = Signal()

    def __init__(
        self,
        store: PromptStore,
        settings: PromptBookSettings,
        parent: QWidget | None = None,
        *,
        ranking_weights: Callable[[], RankingWeightsLike] | None = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._settings = settings
        self._ranking_weights = ranking_weights or partial(
            current_ranking_weights, settings.ranking
        )
        self._preferences_path: Path | None = None
        self._preferences_watcher = QFileSystemWatcher(self)
        self._preferences_watcher.fileChanged.connect(self._on_preferences_changed)
        self._preferences_watcher.directoryChanged.connect(self._on_preferences_changed)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._refreshing = False

        self.setWindowTitle("PromptBook")
        self.setObjectName("promptbookQuickAccess")
        self.resize(420, 360)

        self._search = QLineEdit(self)
        self._search.setObjectName("quickAccessSearch")
        self._search.setPlaceholderText("Search prompts")
        self._search.setClearButtonEnabled(True)
        self._list = QListWidget(self)
        self._list.setObjectName("quickAccessList")
        self._hint = QLabel(self)
        self._hint.setObjectName("quickAccessHint")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 10, 10, 10)
        layout.setSpacing(6)
        layout.addWidget(self._search)
        layout.addWidget(self._list, 1)
        layout.addWidget(self._hint)

        self._search.textChanged.connect(self._on_search_changed)
        self._search.returnPressed.connect(self._on_search_submitted)
        self._list.itemActivated.connect(self._on_item_activated)
        self._list.currentItemChanged.connect(self._on_current_item_changed)
        self._save_shortcut = QShortcut(QKeySequence(QKeySequence.StandardKey.Save), self)
        self._save_shortcut.activated.connect(self.save_now)

        self._subscription = store.subscribe(self._on_store_event)
        self.refresh()

    # Accessors used by the launcher and tests --------------------------- #

    @property
    def search_field(self) -> QLineEdit:
        return self._search

    @property
    def list_widget(self) -> QListWidget:
        return self._list

    def visible_prompts(self) -> list[Prompt]:
        """Return the prompts the list should show for the current search."""
        if self._store.view.search.strip():
            return self._store.filtered_view()
        return self._store.top_ranked(self._settings.top_prompts_limit, self._ranking_weights())

    def watch_preferences(self, config_path: Path) -> None:
        """Re-rank whenever *config_path* (or its directory) changes on disk."""
        self._preferences_path = config_path
        self._watch_preferences_paths()

    def _watch_preferences_paths(self) -> None:
        if self._preferences_path is None:
            return
        current = {*self._preferences_watcher.files(), *self._preferences_watcher.directories()}
        # Atomic replaces drop the file from the watch list; add it back.
        missing = [
            str(path)
            for path in (self._preferences_path, self._preferences_path.parent)
            if path.exists() and str(path) not in current
        ]
        if missing:
            self._preferences_watcher.addPaths(missing)

    # Rendering ---------------------------------------------------------- #

    def refresh(self) -> None:
        view = self._store.view
        prompts = self.visible_prompts()
        self._refreshing = True
        try:
            self._list.clear()
            current_row = -1
            for row, prompt in enumerate(prompts):
                label = prompt.title or "Unnamed"
                if view.copied_id == prompt.id:
                    label = f"{label}  ✓ {COPIED_BADGE}"
                item = QListWidgetItem(label)
                item.setData(PROMPT_ID_ROLE, prompt.id)
                item.setToolTip(prompt.content[:400])
                self._list.addItem(item)
                if prompt.id == view.selected_id:
                    current_row = row
            if current_row >= 0:
                self._list.setCurrentRow(current_row)
        finally:
            self._refreshing = False
        if prompts:
            self._hint.setText("Enter records the search • activate a row to copy")
        else:
            self._hint.setText("No prompts match")

    # Actions ------------------------------------------------------------ #

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def copy_prompt(self, prompt_id: str) -> asyncio.Task[Any]:
        return self._spawn(self._store.record_copy(prompt_id))

    def save_now(self) -> asyncio.Task[Any]:
        """Force a save and show the outcome as a toast."""
        return self._spawn(self._save_with_feedback())

    async def _save_with_feedback(self) -> bool:
        saved = await self._store.force_save()
        show_toast(self, "Saved" if saved else "Save failed")
        return saved

    def flush(self) -> asyncio.Task[Any] | None:
        """Write pending edits immediately when there are any."""
        if not self._store.is_dirty:
            return None
        return self._spawn(self._store.force_save())

    # Signal handlers ---------------------------------------------------- #

    def _on_search_changed(self, text: str) -> None:
        self._store.set_search(text)

    def _on_search_submitted(self) -> None:
        touched = self._store.record_search_match()
        logger.debug("Recorded search %r for %d prompts", self._store.view.search, touched)

    def _on_item_activated(self, item: QListWidgetItem) -> None:
        prompt_id = item.data(PROMPT_ID_ROLE)
        if prompt_id:
            self.copy_prompt(str(prompt_id))

    def _on_current_item_changed(
        self,
        current: QListWidgetItem | None,
        _previous: QListWidgetItem | None,
    ) -> None:
        if self._refreshing or current is None:
            return
        prompt_id = current.data(PROMPT_ID_ROLE)
        if prompt_id:
            self._store.select_prompt(str(prompt_id))

    def _on_preferences_changed(self, path: str) -> None:
        logger.debug("Preferences changed at %s", path)
        self._watch_preferences_paths()
        if not self._store.view.search.strip():
            self.refresh()

    def _on_store_event(self, event: StoreEvent) -> None:
        if event.kind is StoreEventKind.SAVE_FAILED:
            show_toast(self, "Save failed")
        elif event.kind is StoreEventKind.COPY_FAILED:
            show_toast(self, "Copy failed")
        elif event.kind is StoreEventKind.LOAD_FAILED:
            show_toast(self, "Could not read the prompt library")
        if event.kind in _REFRESH_EVENTS:
            self.refresh()

    # Qt events ---------------------------------------------------------- #

    def changeEvent(self, event: QEvent) -> None:  # noqa: N802 - Qt override
        if event.type() == QEvent.Type.ActivationChange and not self.isActiveWindow():
            self.flush()
        super().changeEvent(event)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        self._subscription.close()
        self.closed.emit()
        super().closeEvent(event)


__all__ = ["COPIED_BADGE", "PROMPT_ID_ROLE", "QuickAccessWindow"]
