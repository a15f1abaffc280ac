"""Sample prompts written when a library is opened for the first time."""

from __future__ import annotations

from datetime import UTC, datetime

from models.prompt_model import Prompt, new_prompt_id

_SAMPLES: tuple[tuple[str, str, int, int], ...] = (
    (
        "Bug Triage",
        "## Task\nReview this bug report and return:\n1. Root cause\n2. Minimal fix\n"
        "3. Regression tests",
        12,
        7,
    ),
    (
        "PR Review",
        "Review this PR like a senior engineer. Focus on:\n- behavioral regressions\n"
        "- missing tests\n- performance risks",
        20,
        12,
    ),
    (
        "Release Notes",
        "Write concise release notes from commits grouped by:\n- feature\n- fix\n- chore\n"
        "Include migration warnings and known issues.",
        6,
        10,
    ),
)


def sample_prompts(now: datetime | None = None) -> list[Prompt]:
    """Return fresh copies of the sample prompts with new ids."""
    stamp = now or datetime.now(UTC)
    return [
        Prompt(
            id=new_prompt_id(),
            title=title,
            content=content,
            copy_count=copies,
            search_count=searches,
            updated_at=stamp,
        )
        for title, content, copies, searches in _SAMPLES
    ]


__all__ = ["sample_prompts"]
