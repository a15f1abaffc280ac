"""Qt-backed clipboard for the prompt store.

Updates: v0.1.0 - 2026-10-15 - Write prompt bodies through QGuiApplication.clipboard().
"""

from __future__ import annotations

from PySide6.QtGui import QGuiApplication

from core.exceptions import ClipboardError


class QtClipboard:
    """Clipboard implementation that writes to the system clipboard via Qt."""

    async def write_text(self, text: str) -> None:
        if QGuiApplication.instance() is None:
            raise ClipboardError("No Qt application is running")
        clipboard = QGuiApplication.clipboard()
        if clipboard is None:
            raise ClipboardError("System clipboard is unavailable")
        clipboard.setText(text)


__all__ = ["QtClipboard"]
