"""Argument parser for the PromptBook CLI.

Updates:
  v0.2.0 - 2026-10-16 - Add move, ranking-set and path commands.
  v0.1.0 - 2026-10-10 - Prompt library commands alongside GUI launch flags.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from collections.abc import Sequence


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number") from exc
    if number < 0:
        raise argparse.ArgumentTypeError("value must be greater than or equal to 0")
    return number


def _add_body_arguments(parser: argparse.ArgumentParser) -> None:
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--content", type=str, default=None, help="Prompt body text.")
    body.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Read the prompt body from a UTF-8 text file.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="promptbook", description="PromptBook prompt library")
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )
    parser.add_argument(
        "--gui",
        dest="gui",
        action="store_true",
        default=None,
        help="Launch the quick-access window (default when no command is given).",
    )
    parser.add_argument(
        "--no-gui",
        dest="gui",
        action="store_false",
        help="Do not launch the quick-access window; exit once the library is loaded.",
    )

    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List prompts in display order.")
    list_parser.add_argument(
        "--query",
        type=str,
        default=None,
        help="Only show prompts whose title or body contains this text.",
    )

    show_parser = subparsers.add_parser("show", help="Print a prompt's title and body.")
    show_parser.add_argument("prompt_id", help="Prompt id or a unique id prefix.")

    add_parser = subparsers.add_parser("add", help="Create a new prompt.")
    add_parser.add_argument("--title", type=str, default=None, help="Prompt title.")
    _add_body_arguments(add_parser)

    edit_parser = subparsers.add_parser("edit", help="Change a prompt's title or body.")
    edit_parser.add_argument("prompt_id", help="Prompt id or a unique id prefix.")
    edit_parser.add_argument("--title", type=str, default=None, help="New title.")
    _add_body_arguments(edit_parser)

    delete_parser = subparsers.add_parser("delete", help="Delete a prompt.")
    delete_parser.add_argument("prompt_id", help="Prompt id or a unique id prefix.")

    copy_parser = subparsers.add_parser(
        "copy",
        help="Write a prompt body to stdout (pipe into pbcopy/xclip) and count the copy.",
    )
    copy_parser.add_argument("prompt_id", help="Prompt id or a unique id prefix.")

    search_parser = subparsers.add_parser(
        "search",
        help="Show prompts matching a query and record the search.",
    )
    search_parser.add_argument("query", type=str, help="Case-insensitive search text.")

    top_parser = subparsers.add_parser("top", help="Show the top-ranked prompts.")
    top_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Number of prompts to display (defaults to top_prompts_limit).",
    )

    move_parser = subparsers.add_parser(
        "move",
        help="Move a prompt to a new position (manual ordering only).",
    )
    move_parser.add_argument("prompt_id", help="Prompt id or a unique id prefix.")
    move_parser.add_argument("index", type=int, help="Zero-based target position.")

    ranking_parser = subparsers.add_parser(
        "ranking-set",
        help="Persist ranking weights to the JSON configuration file.",
    )
    for flag, label in (
        ("--copy-weight", "Weight applied to each copy."),
        ("--search-weight", "Weight applied to each matched search."),
        ("--recency-boost", "Bonus for activity inside the recency window."),
        ("--recency-window-hours", "Hours over which the recency bonus decays."),
    ):
        ranking_parser.add_argument(flag, type=_non_negative_float, default=None, help=label)
    ranking_parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop customised weights and return to the defaults.",
    )

    path_parser = subparsers.add_parser(
        "path",
        help="Print the file that stores a prompt.",
    )
    path_parser.add_argument("prompt_id", help="Prompt id or a unique id prefix.")

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the PromptBook launcher."""
    return build_parser().parse_args(argv)


__all__ = ["build_parser", "parse_args"]
