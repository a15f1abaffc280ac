"""Markdown directory backend: one ``.md`` file per prompt plus ``index.json``.

Updates:
  v0.2.1 - 2026-10-18 - Read bodies as raw UTF-8 and report undecodable files as read errors.
  v0.2.0 - 2026-10-12 - Record the writing source in the index for change watchers.
  v0.1.0 - 2026-10-11 - Initial markdown directory persistence with atomic writes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

from core.exceptions import PersistenceReadError, PersistenceWriteError
from models.prompt_model import Prompt, new_prompt_id, normalize_title

from .base import atomic_write, logger, slugify, unique_filename, unslug

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

INDEX_FILENAME = "index.json"
INDEX_VERSION = 1


class MarkdownDirectoryBackend:
    """Store prompt bodies as markdown files and metadata in ``index.json``.

    Files are named after the slugified title. Markdown files dropped into the
    directory by hand are picked up on the next load with their stem as id.
    """

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def index_path(self) -> Path:
        return self._directory / INDEX_FILENAME

    # Reading ------------------------------------------------------------ #

    def _read_index(self) -> dict[str, Any]:
        try:
            raw = self.index_path.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return {"version": INDEX_VERSION, "prompts": []}
        except OSError as exc:
            raise PersistenceReadError(f"Unable to read {self.index_path}") from exc
        except UnicodeDecodeError as exc:
            raise PersistenceReadError(f"Prompt index {self.index_path} is not UTF-8") from exc
        try:
            parsed: object = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceReadError(f"Corrupt prompt index {self.index_path}") from exc
        if not isinstance(parsed, dict):
            raise PersistenceReadError(f"Prompt index {self.index_path} must be a JSON object")
        index = cast("dict[str, Any]", parsed)
        if not isinstance(index.get("prompts", []), list):
            raise PersistenceReadError(f"Prompt index {self.index_path} has no prompt list")
        return index

    def load(self) -> list[Prompt]:
        """Return the stored prompts in index order, then unindexed files by name."""
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            files = sorted(
                entry.name
                for entry in self._directory.iterdir()
                if entry.is_file() and entry.suffix == ".md"
            )
        except OSError as exc:
            raise PersistenceReadError(f"Unable to list {self._directory}") from exc

        index = self._read_index()
        entries_by_file: dict[str, Mapping[str, Any]] = {}
        order_by_file: dict[str, int] = {}
        for position, entry in enumerate(index.get("prompts", [])):
            if not isinstance(entry, dict) or not entry.get("file"):
                continue
            file_name = str(entry["file"])
            entries_by_file[file_name] = cast("Mapping[str, Any]", entry)
            order_by_file.setdefault(file_name, position)
        files.sort(key=lambda name: order_by_file.get(name, len(order_by_file)))

        prompts: list[Prompt] = []
        seen_ids: set[str] = set()
        for file_name in files:
            path = self._directory / file_name
            try:
                # Decode bytes directly; text mode would fold CRLF line endings.
                content = path.read_bytes().decode("utf-8")
            except OSError as exc:
                raise PersistenceReadError(f"Unable to read {path}") from exc
            except UnicodeDecodeError as exc:
                raise PersistenceReadError(f"{path} is not valid UTF-8 text") from exc
            entry = entries_by_file.get(file_name)
            if entry is not None:
                try:
                    prompt = Prompt.from_record({**entry, "content": content})
                except (TypeError, ValueError, OverflowError) as exc:
                    raise PersistenceReadError(f"Invalid index entry for {file_name}") from exc
            else:
                stem = path.stem
                prompt = Prompt(
                    id=stem,
                    title=unslug(stem),
                    content=content,
                    updated_at=self._modified_at(path),
                )
            if prompt.id in seen_ids:
                logger.warning("Duplicate prompt id %s in %s; assigning a new id", prompt.id, path)
                prompt.id = new_prompt_id()
            seen_ids.add(prompt.id)
            prompts.append(prompt)
        return prompts

    @staticmethod
    def _modified_at(path: Path) -> datetime:
        try:
            return datetime.fromtimestamp(path.stat().st_mtime, UTC)
        except OSError:
            return datetime.now(UTC)

    # Writing ------------------------------------------------------------ #

    def save(self, prompts: Sequence[Prompt], *, source: str) -> None:
        """Replace the stored collection with *prompts*.

        Bodies are written first, stale markdown files are removed, and the
        index is written last so a reader never sees entries for files that
        do not exist yet.
        """
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            existing = {
                entry.name
                for entry in self._directory.iterdir()
                if entry.is_file() and entry.suffix == ".md"
            }
            used: set[str] = set()
            entries: list[dict[str, Any]] = []
            for prompt in prompts:
                title = normalize_title(prompt.title)
                file_name = unique_filename(slugify(title), used)
                atomic_write(self._directory / file_name, prompt.content.encode("utf-8"))
                record = prompt.to_record()
                record.pop("content", None)
                record["title"] = title
                record["file"] = file_name
                entries.append(record)
            for stale in existing - used:
                (self._directory / stale).unlink(missing_ok=True)
            index = {"version": INDEX_VERSION, "source": source, "prompts": entries}
            payload = json.dumps(index, indent=2, ensure_ascii=False).encode("utf-8")
            atomic_write(self.index_path, payload)
        except OSError as exc:
            raise PersistenceWriteError(f"Unable to save prompts to {self._directory}") from exc
        logger.debug("Saved %d prompts to %s", len(entries), self._directory)

    # Integration helpers ------------------------------------------------- #

    def last_writer(self) -> str | None:
        """Return the source id recorded by the most recent save, if readable."""
        try:
            index = self._read_index()
        except PersistenceReadError:
            return None
        source = index.get("source")
        return str(source) if source else None

    def watch_paths(self) -> list[Path]:
        # Atomic renames replace the index inode, so watch the directory itself.
        return [self._directory]

    def prompt_path(self, prompt_id: str) -> Path | None:
        """Return the markdown file holding *prompt_id* once it has been saved."""
        try:
            index = self._read_index()
        except PersistenceReadError:
            return None
        for entry in index.get("prompts", []):
            if isinstance(entry, dict) and entry.get("id") == prompt_id and entry.get("file"):
                path = self._directory / str(entry["file"])
                return path if path.exists() else None
        fallback = self._directory / f"{prompt_id}.md"
        return fallback if fallback.exists() else None


__all__ = ["INDEX_FILENAME", "MarkdownDirectoryBackend"]
