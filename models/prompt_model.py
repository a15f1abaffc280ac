"""Prompt data model definitions.

Updates: v0.3.1 - 2026-10-18 - Reject out-of-range timestamps and non-finite counters.
Updates: v0.3.0 - 2026-10-12 - Add structural equality helper for reload reconciliation.
Updates: v0.2.0 - 2026-10-08 - Track copy/search activity timestamps for recency ranking.
Updates: v0.1.0 - 2026-10-05 - Initial Prompt schema with serialization helpers.
"""
from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

UNNAMED_PROMPT_TITLE = "Unnamed"
NEW_PROMPT_CONTENT = "## Task\n"


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def _ensure_datetime(value: Any) -> datetime:
    """Parse incoming datetime values (isoformat strings or datetime)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None:
        return _utc_now()
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), UTC)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"Timestamp {value!r} is out of range") from exc
    parsed = datetime.fromisoformat(str(value))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _optional_datetime(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    return _ensure_datetime(value)


def _non_negative_int(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(number, 0)


def new_prompt_id() -> str:
    """Return a fresh opaque prompt identifier."""
    return str(uuid.uuid4())


def normalize_title(title: str | None) -> str:
    """Return *title* stripped, or the placeholder when it is blank."""
    text = (title or "").strip()
    return text or UNNAMED_PROMPT_TITLE


@dataclass(slots=True)
class Prompt:
    """Dataclass representation of a prompt entry."""
    id: str
    title: str
    content: str
    copy_count: int = 0
    search_count: int = 0
    last_copied_at: datetime | None = None
    last_matched_search_at: datetime | None = None
    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def last_active_at(self) -> datetime | None:
        """Return the most recent copy or search-match timestamp."""
        stamps = [
            stamp for stamp in (self.last_copied_at, self.last_matched_search_at) if stamp
        ]
        return max(stamps) if stamps else None

    def touch(self, now: datetime) -> None:
        """Refresh ``updated_at`` without ever moving it backwards."""
        if now > self.updated_at:
            self.updated_at = now

    def record_copy(self, now: datetime) -> None:
        self.copy_count += 1
        self.last_copied_at = now
        self.touch(now)

    def record_search_match(self, now: datetime) -> None:
        self.search_count += 1
        self.last_matched_search_at = now
        self.touch(now)

    def clone(self) -> Prompt:
        """Return an independent copy of the prompt."""
        return replace(self)

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping of the prompt."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "copyCount": self.copy_count,
            "searchCount": self.search_count,
            "lastCopiedAt": self.last_copied_at.isoformat() if self.last_copied_at else None,
            "lastMatchedSearchAt": (
                self.last_matched_search_at.isoformat() if self.last_matched_search_at else None
            ),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Prompt:
        """Create a Prompt from a stored mapping.

        Missing counters default to zero and naive timestamps are read as UTC.
        The legacy ``copied``/``searched`` keys are accepted for counters.
        """
        if not data.get("id"):
            raise ValueError("prompt record is missing an id")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            copy_count=_non_negative_int(data.get("copyCount", data.get("copied", 0))),
            search_count=_non_negative_int(data.get("searchCount", data.get("searched", 0))),
            last_copied_at=_optional_datetime(data.get("lastCopiedAt")),
            last_matched_search_at=_optional_datetime(data.get("lastMatchedSearchAt")),
            updated_at=_ensure_datetime(data.get("updatedAt")),
        )


def prompts_structurally_equal(left: Sequence[Prompt], right: Sequence[Prompt]) -> bool:
    """Return True when both collections hold the same prompts in the same order.

    Only user-visible fields take part: id, title, content and both counters.
    """
    if len(left) != len(right):
        return False
    for a, b in zip(left, right, strict=True):
        if (
            a.id != b.id
            or a.title != b.title
            or a.content != b.content
            or a.copy_count != b.copy_count
            or a.search_count != b.search_count
        ):
            return False
    return True


__all__ = [
    "NEW_PROMPT_CONTENT",
    "Prompt",
    "UNNAMED_PROMPT_TITLE",
    "new_prompt_id",
    "normalize_title",
    "prompts_structurally_equal",
]
