"""Bridge filesystem changes from other processes onto the prompts-changed bus.

The quick-access window and the CLI run in separate processes. When a
command-line edit rewrites the library, Qt reports the change here and the
watcher republishes it tagged with the backend's recorded last writer, so the
window's own saves are still recognised and skipped by its store.

Updates:
  v0.1.0 - 2026-10-15 - Watch backend paths with QFileSystemWatcher and coalesce bursts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from PySide6.QtCore import QFileSystemWatcher, QObject, QTimer

from core.events import PromptsChangedEvent, prompts_changed_bus

if TYPE_CHECKING:  # pragma: no cover - typing only
    from core.events import PromptsChangedBus
    from core.repository import PromptBackend

logger = logging.getLogger("promptbook.gui.storage_watcher")

EXTERNAL_SOURCE = "external"


class StorageWatcher(QObject):
    """Publish a ``PromptsChangedEvent`` when the backend's files change on disk."""

    def __init__(
        self,
        backend: PromptBackend,
        *,
        bus: PromptsChangedBus | None = None,
        settle_ms: int = 150,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._backend = backend
        self._bus = bus if bus is not None else prompts_changed_bus
        self._watcher = QFileSystemWatcher(self)
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, settle_ms))
        self._timer.timeout.connect(self._publish)
        self._watcher.directoryChanged.connect(self._on_path_changed)
        self._watcher.fileChanged.connect(self._on_path_changed)
        self._running = False

    @property
    def watched_paths(self) -> list[str]:
        return [*self._watcher.directories(), *self._watcher.files()]

    def start(self) -> None:
        self._running = True
        self._refresh_paths()
        logger.debug("Watching %s", ", ".join(self.watched_paths) or "<nothing>")

    def stop(self) -> None:
        self._running = False
        self._timer.stop()
        paths = self.watched_paths
        if paths:
            self._watcher.removePaths(paths)

    def _refresh_paths(self) -> None:
        # Atomic renames drop replaced files from the watch list; add them back.
        current = set(self.watched_paths)
        missing = [
            str(path)
            for path in self._backend.watch_paths()
            if path.exists() and str(path) not in current
        ]
        if missing:
            self._watcher.addPaths(missing)

    def _on_path_changed(self, path: str) -> None:
        if not self._running:
            return
        logger.debug("Storage change detected at %s", path)
        self._timer.start()

    def _publish(self) -> None:
        if not self._running:
            return
        self._refresh_paths()
        writer = self._backend.last_writer()
        self._bus.publish(PromptsChangedEvent(source=writer or EXTERNAL_SOURCE))


__all__ = ["EXTERNAL_SOURCE", "StorageWatcher"]
