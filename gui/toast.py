"""Toast helpers used by the PromptBook quick-access window.

Updates: v0.1.0 - 2026-10-15 - Transient "Saved" and error feedback anchored to the window."""

from __future__ import annotations

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import QLabel, QWidget

TOAST_OBJECT_NAME = "promptbookToast"


def show_toast(parent: QWidget | None, message: str, duration_ms: int = 1200) -> QLabel | None:
    """Display a brief message near the bottom of *parent* and return the label."""
    if parent is None or not message:
        return None
    toast = QLabel(message, parent)
    toast.setObjectName(TOAST_OBJECT_NAME)
    toast.setStyleSheet(
        "background-color: rgba(17, 24, 39, 0.92);"
        "color: #f8fafc;"
        "padding: 6px 14px;"
        "border-radius: 8px;"
    )
    toast.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
    toast.adjustSize()
    parent_rect = parent.rect()
    x_pos = max((parent_rect.width() - toast.width()) // 2, 0)
    y_pos = max(parent_rect.height() - toast.height() - 16, 0)
    toast.move(x_pos, y_pos)
    toast.show()
    toast.raise_()
    QTimer.singleShot(max(0, duration_ms), toast.deleteLater)
    return toast


__all__ = ["TOAST_OBJECT_NAME", "show_toast"]
