"""Search helpers for filtering the prompt collection.

Updates:
  v0.1.0 - 2026-10-08 - Case-insensitive substring filter over title and content.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.prompt_model import Prompt


def normalize_query(query: str | None) -> str:
    """Return *query* trimmed and case-folded."""
    return (query or "").strip().casefold()


def prompt_matches(prompt: Prompt, normalized_query: str) -> bool:
    return (
        normalized_query in prompt.title.casefold()
        or normalized_query in prompt.content.casefold()
    )


def filter_prompts(prompts: Iterable[Prompt], query: str | None) -> list[Prompt]:
    """Return prompts whose title or content contains *query*.

    A blank query returns every prompt in its current order.
    """
    normalized = normalize_query(query)
    if not normalized:
        return list(prompts)
    return [prompt for prompt in prompts if prompt_matches(prompt, normalized)]


__all__ = ["filter_prompts", "normalize_query", "prompt_matches"]
