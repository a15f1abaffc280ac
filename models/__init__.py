"""Data models for PromptBook.

Updates: v0.1.0 - 2026-10-05 - Export Prompt dataclass and title helpers.
"""

from .prompt_model import (
    NEW_PROMPT_CONTENT,
    UNNAMED_PROMPT_TITLE,
    Prompt,
    new_prompt_id,
    normalize_title,
    prompts_structurally_equal,
)

__all__ = [
    "NEW_PROMPT_CONTENT",
    "Prompt",
    "UNNAMED_PROMPT_TITLE",
    "new_prompt_id",
    "normalize_title",
    "prompts_structurally_equal",
]
