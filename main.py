"""Application entry point for PromptBook.

Updates:
  v0.2.0 - 2026-10-16 - Dispatch async store commands through COMMAND_SPECS.
  v0.1.0 - 2026-10-10 - Wire settings, logging, CLI commands and the GUI launcher.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cli.commands import COMMAND_SPECS, execute_command
from cli.gui_launcher import run_default_mode
from cli.parser import parse_args
from cli.runtime import setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from collections.abc import Sequence

EXIT_SETTINGS_FAILED = 2


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, logging, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("promptbook.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        cause = exc.__cause__
        logger.error("Failed to load settings: %s%s", exc, f" ({cause})" if cause else "")
        return EXIT_SETTINGS_FAILED

    if args.print_settings:
        print_settings_summary(settings)
        return 0

    spec = COMMAND_SPECS.get(getattr(args, "command", None))
    if spec is not None:
        return execute_command(spec, settings, args, logger)
    return run_default_mode(settings, args, logger)


if __name__ == "__main__":
    raise SystemExit(main())
