"""CLI command handlers for PromptBook.

Each command opens its own prompt store, loads the library, runs and flushes
before exiting, so edits made from a terminal reach a running quick-access
window through its storage watcher.

Updates:
  v0.3.1 - 2026-10-18 - Resolve the preferences file through the shared config helper.
  v0.3.0 - 2026-10-16 - Add move, ranking-set and path commands.
  v0.2.0 - 2026-10-13 - Accept unique id prefixes wherever an id is expected.
  v0.1.0 - 2026-10-10 - Introduce list/show/add/edit/delete/copy/search/top commands.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from config import RankingWeights, config_file_path
from config.persistence import persist_settings_to_config
from core import (
    ClipboardError,
    MarkdownDirectoryBackend,
    PromptNotFoundError,
    PromptStore,
    PromptStoreError,
    SQLitePromptBackend,
    StoreEvent,
    StoreEventKind,
    StreamClipboard,
    build_prompt_store,
    build_ranking_service,
)

from .utils import format_prompt_row, print_and_log

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import PromptBookSettings
    from core import PromptBackend

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_LOAD_FAILED = 3
EXIT_NOT_FOUND = 5
EXIT_SAVE_FAILED = 6
EXIT_CLIPBOARD_FAILED = 7


@dataclass(slots=True)
class CommandContext:
    """Services available to a command handler."""

    settings: PromptBookSettings
    store: PromptStore | None = None
    backend: PromptBackend | None = None

    def require_store(self) -> PromptStore:
        if self.store is None:
            raise ValueError("This command needs a loaded prompt store.")
        return self.store


CommandHandler = Callable[[CommandContext, argparse.Namespace, logging.Logger], Awaitable[int]]


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    requires_store: bool = True


def _resolve_prompt_id(store: PromptStore, token: str) -> str:
    """Return the id matching *token* exactly or as a unique prefix."""
    prompts = store.prompts
    for prompt in prompts:
        if prompt.id == token:
            return prompt.id
    candidates = [prompt.id for prompt in prompts if prompt.id.startswith(token)]
    if len(candidates) == 1:
        return candidates[0]
    if candidates:
        raise PromptNotFoundError(f"Prompt id prefix {token!r} is ambiguous")
    raise PromptNotFoundError(f"Prompt {token} not found")


def _read_body(args: argparse.Namespace) -> str | None:
    file_path: Path | None = getattr(args, "file", None)
    if file_path is not None:
        try:
            return file_path.expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"Unable to read {file_path}: {exc}") from exc
    return getattr(args, "content", None)


async def _flush(store: PromptStore, logger: logging.Logger) -> int:
    if await store.force_save():
        return EXIT_OK
    print_and_log(logger, logging.ERROR, "Failed to save the prompt library.")
    return EXIT_SAVE_FAILED


async def run_list(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del logger
    store = context.require_store()
    prompts = store.filtered_view(getattr(args, "query", None) or "")
    if not prompts:
        print("No prompts found.")
        return EXIT_OK
    for position, prompt in enumerate(prompts):
        print(format_prompt_row(position, prompt))
    return EXIT_OK


async def run_show(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del logger
    store = context.require_store()
    prompt = store.get(_resolve_prompt_id(store, args.prompt_id))
    print(f"# {prompt.title}")
    print(f"id: {prompt.id}  copies: {prompt.copy_count}  searches: {prompt.search_count}")
    print()
    print(prompt.content)
    return EXIT_OK


async def run_add(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    store = context.require_store()
    body = _read_body(args)
    prompt_id = store.add_prompt(content=body)
    title = getattr(args, "title", None)
    if title is not None:
        await store.commit_title(prompt_id, title)
    status = await _flush(store, logger)
    if status == EXIT_OK:
        print_and_log(logger, logging.INFO, f"Added prompt {prompt_id}")
    return status


async def run_edit(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    store = context.require_store()
    prompt_id = _resolve_prompt_id(store, args.prompt_id)
    body = _read_body(args)
    title = getattr(args, "title", None)
    if body is None and title is None:
        print_and_log(logger, logging.ERROR, "Nothing to change: pass --title, --content or --file")
        return EXIT_USAGE
    if body is not None:
        store.update_content(prompt_id, body)
    if title is not None:
        await store.commit_title(prompt_id, title)
    status = await _flush(store, logger)
    if status == EXIT_OK:
        print_and_log(logger, logging.INFO, f"Updated prompt {prompt_id}")
    return status


async def run_delete(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    store = context.require_store()
    prompt_id = _resolve_prompt_id(store, args.prompt_id)
    store.delete_prompt(prompt_id)
    status = await _flush(store, logger)
    if status == EXIT_OK:
        print_and_log(logger, logging.INFO, f"Deleted prompt {prompt_id}")
    return status


async def run_copy(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    store = context.require_store()
    prompt_id = _resolve_prompt_id(store, args.prompt_id)
    if not await store.record_copy(prompt_id):
        # stdout carries the prompt body; keep diagnostics on the log only.
        logger.error("Unable to copy prompt %s", prompt_id)
        return EXIT_CLIPBOARD_FAILED
    if not await store.force_save():
        logger.error("Copied prompt %s but failed to save usage counters", prompt_id)
        return EXIT_SAVE_FAILED
    logger.info("Copied prompt %s", prompt_id)
    return EXIT_OK


async def run_search(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    store = context.require_store()
    matches = store.filtered_view(args.query)
    touched = store.record_search_match(args.query)
    if not matches:
        print("No prompts found.")
        return EXIT_OK
    for position, prompt in enumerate(matches):
        print(format_prompt_row(position, prompt))
    if touched:
        return await _flush(store, logger)
    return EXIT_OK


async def run_top(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del logger
    store = context.require_store()
    service = build_ranking_service(context.settings)
    limit = args.limit if args.limit is not None else context.settings.top_prompts_limit
    prompts = store.top_ranked(limit, service)
    if not prompts:
        print("No prompts found.")
        return EXIT_OK
    for position, prompt in enumerate(prompts):
        print(format_prompt_row(position, prompt, score=service.score(prompt)))
    return EXIT_OK


async def run_move(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    store = context.require_store()
    prompt_id = _resolve_prompt_id(store, args.prompt_id)
    store.move_prompt(prompt_id, args.index)
    status = await _flush(store, logger)
    if status == EXIT_OK:
        position = [prompt.id for prompt in store.prompts].index(prompt_id)
        print_and_log(logger, logging.INFO, f"Moved prompt {prompt_id} to position {position}")
    return status


async def run_ranking_set(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    names = ("copy_weight", "search_weight", "recency_boost", "recency_window_hours")
    if getattr(args, "reset", False):
        weights = RankingWeights()
    else:
        changes = {
            name: getattr(args, name) for name in names if getattr(args, name, None) is not None
        }
        if not changes:
            print_and_log(logger, logging.ERROR, "Pass at least one weight or --reset.")
            return EXIT_USAGE
        weights = context.settings.ranking.model_copy(update=changes)
    config_path = config_file_path()
    try:
        written = persist_settings_to_config({"ranking": weights}, config_path)
    except OSError as exc:
        print_and_log(logger, logging.ERROR, f"Failed to write {config_path}: {exc}")
        return EXIT_SAVE_FAILED
    summary = ", ".join(f"{name}={getattr(weights, name):g}" for name in names)
    print_and_log(logger, logging.INFO, f"Ranking weights saved to {written}: {summary}")
    return EXIT_OK


async def run_path(
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    store = context.require_store()
    prompt_id = _resolve_prompt_id(store, args.prompt_id)
    backend = context.backend
    if isinstance(backend, MarkdownDirectoryBackend):
        path = backend.prompt_path(prompt_id)
        if path is None:
            print_and_log(logger, logging.ERROR, f"Prompt {prompt_id} has not been saved yet.")
            return EXIT_NOT_FOUND
        print(path)
        return EXIT_OK
    if isinstance(backend, SQLitePromptBackend):
        print(backend.db_path)
        return EXIT_OK
    print_and_log(logger, logging.ERROR, "The configured backend does not store prompts as files.")
    return EXIT_USAGE


async def _run_with_store(
    spec: CommandSpec,
    context: CommandContext,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    store = context.require_store()
    failures: list[StoreEvent] = []

    def _collect(event: StoreEvent) -> None:
        if event.kind is StoreEventKind.LOAD_FAILED:
            failures.append(event)

    with store.subscribe(_collect):
        loaded = await store.load()
    if not loaded:
        reason = failures[0].error if failures else "unknown error"
        print_and_log(logger, logging.ERROR, f"Failed to load the prompt library: {reason}")
        await store.close()
        return EXIT_LOAD_FAILED
    try:
        return await spec.handler(context, args, logger)
    finally:
        await store.close()


def execute_command(
    spec: CommandSpec,
    settings: PromptBookSettings,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Run *spec* on a fresh event loop and map failures to exit codes."""
    context = CommandContext(settings=settings)
    if spec.requires_store:
        store = build_prompt_store(
            settings,
            clipboard=StreamClipboard(),
            source_id=f"cli-{os.getpid()}",
        )
        context.store = store
        context.backend = store.backend

    try:
        if spec.requires_store:
            return asyncio.run(_run_with_store(spec, context, args, logger))
        return asyncio.run(spec.handler(context, args, logger))
    except PromptNotFoundError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_NOT_FOUND
    except ClipboardError as exc:
        print_and_log(logger, logging.ERROR, f"Clipboard error: {exc}")
        return EXIT_CLIPBOARD_FAILED
    except (PromptStoreError, ValueError) as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_USAGE


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    "list": CommandSpec(run_list),
    "show": CommandSpec(run_show),
    "add": CommandSpec(run_add),
    "edit": CommandSpec(run_edit),
    "delete": CommandSpec(run_delete),
    "copy": CommandSpec(run_copy),
    "search": CommandSpec(run_search),
    "top": CommandSpec(run_top),
    "move": CommandSpec(run_move),
    "ranking-set": CommandSpec(run_ranking_set, requires_store=False),
    "path": CommandSpec(run_path),
}


__all__ = ["COMMAND_SPECS", "CommandContext", "CommandSpec", "execute_command"]
