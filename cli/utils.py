"""Shared CLI utility functions for PromptBook commands.

Updates:
  v0.1.0 - 2026-10-10 - Stdout logging, prompt row formatting and path descriptions.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from logging import Logger

    from models.prompt_model import Prompt

_TITLE_WIDTH = 32


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def format_prompt_row(position: int, prompt: Prompt, *, score: float | None = None) -> str:
    """Return a one-line listing for *prompt*."""
    title = prompt.title.strip() or "Unnamed"
    if len(title) > _TITLE_WIDTH:
        title = title[: _TITLE_WIDTH - 3] + "..."
    row = (
        f"{position:>3}  {prompt.id[:8]}  {title:<{_TITLE_WIDTH}}  "
        f"copies={prompt.copy_count:<4} searches={prompt.search_count:<4}"
    )
    if score is not None:
        row += f" score={score:.2f}"
    return row.rstrip()


def describe_path(
    path_value: object,
    *,
    expect_directory: bool,
    allow_missing_file: bool = False,
) -> str:
    """Return a human-friendly description of *path_value* suitability."""
    try:
        path = Path(path_value) if path_value is not None else None  # type: ignore[arg-type]
    except TypeError:
        path = None
    if path is None:
        return "not set"

    resolved = path.expanduser()
    if resolved.exists():
        if expect_directory and not resolved.is_dir():
            return f"{resolved} (exists but is not a directory)"
        if not expect_directory and resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"

    message = f"{resolved} (missing)"
    if expect_directory or allow_missing_file:
        message = f"{resolved} (missing - created on demand)"
    parent = resolved.parent
    if not parent.exists():
        message += f", parent missing: {parent}"
    return message


__all__ = ["describe_path", "format_prompt_row", "print_and_log"]
