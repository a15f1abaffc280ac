"""Clipboard collaborators used by the prompt store.

Updates:
  v0.1.0 - 2026-10-08 - Define clipboard protocol and stream-backed CLI clipboard.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Protocol, TextIO

from .exceptions import ClipboardError

if TYPE_CHECKING:
    from collections.abc import Callable


class Clipboard(Protocol):
    """Asynchronous text clipboard; raises :class:`ClipboardError` on failure."""

    async def write_text(self, text: str) -> None: ...


class StreamClipboard:
    """Write copied text to a stream so the CLI can be piped into ``pbcopy``/``xclip``."""

    def __init__(self, stream_factory: Callable[[], TextIO] | None = None) -> None:
        self._stream_factory = stream_factory or (lambda: sys.stdout)

    async def write_text(self, text: str) -> None:
        stream = self._stream_factory()
        try:
            stream.write(text)
            if not text.endswith("\n"):
                stream.write("\n")
            stream.flush()
        except (OSError, ValueError) as exc:
            raise ClipboardError("Unable to write prompt text to the output stream") from exc


__all__ = ["Clipboard", "StreamClipboard"]
