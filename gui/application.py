"""Qt application helpers for the PromptBook GUI.

The prompt store is asyncio based, so the window runs on Qt's asyncio event
loop (``PySide6.QtAsyncio``): store timers, backend threads and Qt signals
all share the GUI thread's loop.

Updates:
  v0.2.1 - 2026-10-18 - Refresh ranking when the preferences file changes.
  v0.2.0 - 2026-10-16 - Flush and close the store before the Qt loop exits.
  v0.1.1 - 2026-10-15 - Detect display server before forcing offscreen backend.
  v0.1.0 - 2026-10-15 - Provide QApplication factory and quick-access launch routine.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import TYPE_CHECKING, cast

from PySide6 import QtAsyncio
from PySide6.QtWidgets import QApplication, QStyleFactory

from config import config_file_path
from core.events import prompts_changed_bus
from core.factory import build_prompt_store

from .clipboard import QtClipboard
from .quick_access import QuickAccessWindow
from .storage_watcher import StorageWatcher

if TYPE_CHECKING:
    from collections.abc import MutableMapping, Sequence

    from config import PromptBookSettings
    from core.events import PromptsChangedBus

_DISPLAY_ENV_VARS = ("DISPLAY", "WAYLAND_DISPLAY", "MIR_SOCKET")
logger = logging.getLogger("promptbook.gui.application")


def _should_force_offscreen(env: MutableMapping[str, str]) -> bool:
    """Return True when we should default Qt to the offscreen platform plugin."""
    if env.get("QT_QPA_PLATFORM"):
        return False

    if sys.platform.startswith(("win", "cygwin")) or sys.platform == "darwin":
        return False

    return not any(env.get(var) for var in _DISPLAY_ENV_VARS)


def create_qapplication(argv: Sequence[str] | None = None) -> QApplication:
    """Return an existing QApplication or create a new one with sensible defaults."""
    existing = QApplication.instance()
    if existing is not None:
        return cast(QApplication, existing)

    if _should_force_offscreen(os.environ):
        # Allow running in headless environments by defaulting to the offscreen plugin.
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    app = QApplication(list(argv or []))
    fusion = QStyleFactory.create("Fusion")
    if fusion is not None:
        app.setStyle(fusion)
    logger.debug("GUI_STYLE active_style=%s", app.style().metaObject().className())
    return app


async def run_quick_access(
    settings: PromptBookSettings,
    *,
    bus: PromptsChangedBus | None = None,
) -> int:
    """Load the library, show the window and wait until it is closed."""
    shared_bus = bus if bus is not None else prompts_changed_bus
    store = build_prompt_store(
        settings,
        clipboard=QtClipboard(),
        bus=shared_bus,
        source_id=f"gui-{os.getpid()}",
    )
    await store.load()

    window = QuickAccessWindow(store, settings)
    window.watch_preferences(config_file_path().resolve())
    watcher = StorageWatcher(store.backend, bus=shared_bus, parent=window)
    closed: asyncio.Future[None] = asyncio.get_running_loop().create_future()

    def _on_closed() -> None:
        if not closed.done():
            closed.set_result(None)

    window.closed.connect(_on_closed)
    watcher.start()
    window.show()
    window.activateWindow()
    try:
        await closed
    finally:
        watcher.stop()
        await store.close()
    logger.debug("Quick-access window closed")
    return 0


def launch_promptbook(settings: PromptBookSettings) -> int:
    """Create the Qt application and run the quick-access window to completion."""
    app = create_qapplication()
    # The store flushes after the window closes; keep the loop alive until then.
    app.setQuitOnLastWindowClosed(False)
    result = QtAsyncio.run(run_quick_access(settings), keep_running=False, quit_qapp=True)
    return int(result or 0)


__all__ = ["create_qapplication", "launch_promptbook", "run_quick_access"]
