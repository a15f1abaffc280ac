"""Runtime boot helpers for the PromptBook CLI.

Updates:
  v0.1.0 - 2026-10-10 - Logging configuration from config/logging.conf with a basic fallback.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

DEFAULT_LOGGING_CONFIG = Path("config/logging.conf")
_FALLBACK_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(logging_conf_path: Path | None) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or DEFAULT_LOGGING_CONFIG
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (KeyError, ValueError, OSError, RuntimeError) as exc:
            logging.basicConfig(level=logging.INFO, format=_FALLBACK_FORMAT)
            logging.getLogger("promptbook.cli").warning(
                "Ignoring invalid logging configuration %s: %s", path, exc
            )
            return
    logging.basicConfig(level=logging.INFO, format=_FALLBACK_FORMAT)


__all__ = ["DEFAULT_LOGGING_CONFIG", "setup_logging"]
