"""Default CLI behaviour for launching the PromptBook quick-access window."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, cast

from .utils import print_and_log

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    import argparse
    from collections.abc import Callable

    from config import PromptBookSettings

EXIT_GUI_UNAVAILABLE = 4


def run_default_mode(
    settings: PromptBookSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Print where the library lives and optionally launch the GUI."""
    location = (
        settings.resolved_db_path if settings.storage_backend == "sqlite" else settings.data_dir
    )
    print_and_log(
        logger,
        logging.INFO,
        f"PromptBook ready. {settings.storage_backend} library at {location}",
    )
    launch_requested = args.gui if args.gui is not None else True
    if not launch_requested:
        return 0

    try:
        gui_module = importlib.import_module("gui")
    except ModuleNotFoundError as exc:  # pragma: no cover - import failure path
        logger.error(
            "GUI launch requested but dependency %s is missing. Install PySide6 "
            "or rerun with --no-gui.",
            exc.name,
        )
        return EXIT_GUI_UNAVAILABLE
    launch_gui_callable = getattr(gui_module, "launch_promptbook", None)
    if not callable(launch_gui_callable):  # pragma: no cover - misconfigured GUI package
        logger.error("GUI module is missing the launch_promptbook entry point.")
        return EXIT_GUI_UNAVAILABLE
    launch_callable = cast("Callable[[PromptBookSettings], int]", launch_gui_callable)
    dependency_error_type = getattr(gui_module, "GuiDependencyError", RuntimeError)

    try:
        return launch_callable(settings)
    except dependency_error_type as exc:
        logger.error("Unable to start GUI: %s", exc)
        return EXIT_GUI_UNAVAILABLE


__all__ = ["EXIT_GUI_UNAVAILABLE", "run_default_mode"]
