"""Lifecycle and view state containers for the prompt store.

Updates:
  v0.2.0 - 2026-10-13 - Reconcile view state against reloaded collections.
  v0.1.0 - 2026-10-08 - Extract store lifecycle enum and view state container.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from models.prompt_model import Prompt


class StoreState(str, Enum):
    """Lifecycle stage of a :class:`core.prompt_store.PromptStore`."""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    EMPTY_SEEDED = "empty_seeded"
    READY = "ready"
    RELOADING = "reloading"
    CLOSED = "closed"


MUTABLE_STATES = frozenset({StoreState.READY, StoreState.RELOADING})


@dataclass(slots=True)
class ViewState:
    """Selection and editing state shared by the views of one window."""
    search: str = ""
    selected_id: str | None = None
    expanded_id: str | None = None
    editing_title_id: str | None = None
    editing_title_value: str = ""
    copied_id: str | None = None
    delete_confirm_id: str | None = None

    def snapshot(self) -> ViewState:
        return replace(self)

    def reconcile(self, prompts: Sequence[Prompt]) -> bool:
        """Point stale references at surviving prompts; return True when anything changed.

        Selection and expansion keep their id when it still exists, otherwise
        fall back to the first prompt (or nothing for an empty collection).
        Transient references to vanished prompts are cleared.
        """
        ids = {prompt.id for prompt in prompts}
        first = prompts[0].id if prompts else None
        before = self.snapshot()
        if self.selected_id not in ids:
            self.selected_id = first
        if self.expanded_id not in ids:
            self.expanded_id = first
        if self.editing_title_id is not None and self.editing_title_id not in ids:
            self.editing_title_id = None
            self.editing_title_value = ""
        if self.copied_id is not None and self.copied_id not in ids:
            self.copied_id = None
        if self.delete_confirm_id is not None and self.delete_confirm_id not in ids:
            self.delete_confirm_id = None
        return before != self

    def forget(self, prompt_id: str, remaining: Sequence[Prompt]) -> None:
        """Drop every reference to a deleted prompt."""
        first = remaining[0].id if remaining else None
        if not remaining:
            self.selected_id = None
            self.expanded_id = None
        if self.selected_id == prompt_id:
            self.selected_id = first
        if self.expanded_id == prompt_id:
            self.expanded_id = first
        if self.editing_title_id == prompt_id:
            self.editing_title_id = None
            self.editing_title_value = ""
        if self.copied_id == prompt_id:
            self.copied_id = None
        if self.delete_confirm_id == prompt_id:
            self.delete_confirm_id = None


__all__ = ["MUTABLE_STATES", "StoreState", "ViewState"]
