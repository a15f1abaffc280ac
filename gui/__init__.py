"""GUI module namespace for PromptBook.

Updates: v0.2.0 - 2026-10-15 - Launch the quick-access window on Qt's asyncio loop.
Updates: v0.1.0 - 2026-10-11 - Handle missing PySide6 dependency with friendly error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

if TYPE_CHECKING:
    from collections.abc import Sequence

    from config import PromptBookSettings


class GuiDependencyError(RuntimeError):
    """Raised when the GUI cannot start because optional dependencies are absent."""


_MISSING_PYSIDE6_MESSAGE = (
    "PySide6 is not installed. Install it with `pip install -e .` before launching "
    "the quick-access window, or rerun with --no-gui."
)

try:
    from .application import create_qapplication, launch_promptbook
except ModuleNotFoundError as exc:  # pragma: no cover - exercised when PySide6 is absent
    if exc.name is None or not exc.name.startswith("PySide6"):
        raise

    def _raise_create_qapplication(_: Sequence[str] | None = None) -> NoReturn:
        raise GuiDependencyError(_MISSING_PYSIDE6_MESSAGE) from None

    def _raise_launch_promptbook(_: PromptBookSettings) -> NoReturn:
        raise GuiDependencyError(_MISSING_PYSIDE6_MESSAGE) from None

    create_qapplication = _raise_create_qapplication
    launch_promptbook = _raise_launch_promptbook


__all__ = ["GuiDependencyError", "create_qapplication", "launch_promptbook"]
