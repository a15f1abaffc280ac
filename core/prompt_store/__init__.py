"""Prompt store: the in-memory prompt collection and its view state.

A store owns one window's copy of the library. Every mutation goes through a
store entry point, marks the store dirty and restarts the autosave debounce;
see :mod:`core.prompt_store.sync` for the load/save/reload side.

Updates:
  v0.4.0 - 2026-10-16 - Add manual reordering and the recent-first ordering policy.
  v0.3.0 - 2026-10-14 - Two-step delete confirmation and copy feedback timers.
  v0.2.0 - 2026-10-12 - Record search matches once per distinct query.
  v0.1.0 - 2026-10-08 - Introduce prompt store with debounced persistence.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from config.settings import OrderingPolicy
from core.events import EventHub, prompts_changed_bus
from core.exceptions import ClipboardError, PromptNotFoundError, PromptStoreError
from core.ranking import PromptRankingService
from models.prompt_model import (
    NEW_PROMPT_CONTENT,
    UNNAMED_PROMPT_TITLE,
    Prompt,
    new_prompt_id,
    normalize_title,
)

from .events import StoreEvent, StoreEventKind
from .search import filter_prompts, normalize_query
from .seed import sample_prompts
from .state import MUTABLE_STATES, StoreState, ViewState
from .sync import SyncMixin

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable

    from core.clipboard import Clipboard
    from core.events import PromptsChangedBus, Subscription
    from core.ranking import RankingWeightsLike
    from core.repository import PromptBackend

logger = logging.getLogger("promptbook.store")

_COPIED_TIMER = "copied"
_DELETE_CONFIRM_TIMER = "delete_confirm"


def _default_clock() -> datetime:
    return datetime.now(UTC)


class PromptStore(SyncMixin):
    """Single source of truth for one window's prompts and view state."""

    def __init__(
        self,
        backend: PromptBackend,
        *,
        bus: PromptsChangedBus | None = None,
        source_id: str | None = None,
        clipboard: Clipboard | None = None,
        ordering: OrderingPolicy = OrderingPolicy.MANUAL,
        autosave_delay: float = 0.22,
        copy_feedback_delay: float = 1.0,
        delete_confirm_delay: float = 1.6,
        seed_prompts: Callable[[], list[Prompt]] | None = sample_prompts,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._backend = backend
        self._bus = bus if bus is not None else prompts_changed_bus
        self._source_id = source_id or f"store-{uuid.uuid4().hex[:12]}"
        self._clipboard = clipboard
        self._ordering = OrderingPolicy(ordering)
        self._autosave_delay = max(0.0, autosave_delay)
        self._copy_feedback_delay = max(0.0, copy_feedback_delay)
        self._delete_confirm_delay = max(0.0, delete_confirm_delay)
        self._seed_factory = seed_prompts
        self._clock = clock or _default_clock
        self._events: EventHub[StoreEvent] = EventHub()
        self._prompts: list[Prompt] = []
        self._view = ViewState()
        self._state = StoreState.UNINITIALIZED
        self._last_recorded_search = ""
        self._initialise_sync()

    # Read access -------------------------------------------------------- #

    @property
    def backend(self) -> PromptBackend:
        return self._backend

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def ordering(self) -> OrderingPolicy:
        return self._ordering

    @property
    def prompts(self) -> list[Prompt]:
        """Return the collection in display order (a new list; items are live)."""
        return list(self._prompts)

    @property
    def view(self) -> ViewState:
        """Return a snapshot of the view state."""
        return self._view.snapshot()

    def get(self, prompt_id: str) -> Prompt:
        prompt = self._find(prompt_id)
        if prompt is None:
            raise PromptNotFoundError(f"Prompt {prompt_id} not found")
        return prompt

    def filtered_view(self, query: str | None = None) -> list[Prompt]:
        """Return prompts matching *query*, or the current search when omitted."""
        return filter_prompts(self._prompts, self._view.search if query is None else query)

    def top_ranked(
        self,
        n: int,
        weights: RankingWeightsLike | PromptRankingService,
        now: datetime | None = None,
    ) -> list[Prompt]:
        """Return the *n* best-ranked prompts under *weights*."""
        service = (
            weights
            if isinstance(weights, PromptRankingService)
            else PromptRankingService.from_weights(weights)
        )
        return service.top(self._prompts, n, now or self._clock())

    def subscribe(self, callback: Callable[[StoreEvent], None]) -> Subscription[StoreEvent]:
        """Register *callback* for store events; close the handle to stop."""
        return self._events.subscribe(callback)

    # Helpers ------------------------------------------------------------ #

    def _find(self, prompt_id: str | None) -> Prompt | None:
        if prompt_id is None:
            return None
        for prompt in self._prompts:
            if prompt.id == prompt_id:
                return prompt
        return None

    def _require_mutable(self) -> None:
        if self._state not in MUTABLE_STATES:
            raise PromptStoreError(f"Prompt store is not ready (state: {self._state.value})")

    def _lookup(self, prompt_id: str, action: str) -> Prompt | None:
        self._require_mutable()
        prompt = self._find(prompt_id)
        if prompt is None:
            logger.warning("Cannot %s unknown prompt %s", action, prompt_id)
        return prompt

    def _ordered(self, prompts: list[Prompt]) -> list[Prompt]:
        """Return *prompts* arranged for the active ordering policy."""
        if self._ordering is OrderingPolicy.RECENT:
            prompts.sort(key=lambda prompt: prompt.updated_at, reverse=True)
        return prompts

    def _changed(self, prompt_id: str | None = None) -> None:
        self._prompts = self._ordered(self._prompts)
        self._mark_dirty()
        self._emit(StoreEventKind.CHANGED, prompt_id=prompt_id)

    def _view_changed(self, prompt_id: str | None = None) -> None:
        self._emit(StoreEventKind.VIEW_CHANGED, prompt_id=prompt_id)

    # Prompt mutations --------------------------------------------------- #

    def add_prompt(self, title: str | None = None, content: str | None = None) -> str:
        """Create a prompt, select and expand it, and return its id."""
        self._require_mutable()
        prompt = Prompt(
            id=new_prompt_id(),
            title=title if title is not None else UNNAMED_PROMPT_TITLE,
            content=content if content is not None else NEW_PROMPT_CONTENT,
            updated_at=self._clock(),
        )
        self._prompts.insert(0, prompt)
        self._view.selected_id = prompt.id
        self._view.expanded_id = prompt.id
        logger.debug("Added prompt %s", prompt.id)
        self._changed(prompt.id)
        return prompt.id

    def update_content(self, prompt_id: str, content: str) -> bool:
        prompt = self._lookup(prompt_id, "update content of")
        if prompt is None:
            return False
        prompt.content = content
        prompt.touch(self._clock())
        self._changed(prompt_id)
        return True

    def update_title(self, prompt_id: str, title: str) -> bool:
        """Store *title* as typed; it is normalised when committed or saved."""
        prompt = self._lookup(prompt_id, "rename")
        if prompt is None:
            return False
        prompt.title = title
        prompt.touch(self._clock())
        if self._view.editing_title_id == prompt_id:
            self._view.editing_title_value = title
        self._changed(prompt_id)
        return True

    async def commit_title(self, prompt_id: str, title: str | None = None) -> bool:
        """Finish editing a title and persist it immediately.

        When *title* is omitted the in-progress editing value is used.
        """
        prompt = self._lookup(prompt_id, "commit title of")
        if prompt is None:
            return False
        if title is None:
            title = (
                self._view.editing_title_value
                if self._view.editing_title_id == prompt_id
                else prompt.title
            )
        prompt.title = normalize_title(title)
        prompt.touch(self._clock())
        if self._view.editing_title_id == prompt_id:
            self._view.editing_title_id = None
            self._view.editing_title_value = ""
        self._changed(prompt_id)
        return await self.force_save()

    def delete_prompt(self, prompt_id: str) -> bool:
        prompt = self._lookup(prompt_id, "delete")
        if prompt is None:
            return False
        self._prompts.remove(prompt)
        if self._view.delete_confirm_id == prompt_id:
            self._cancel_timer(_DELETE_CONFIRM_TIMER)
        if self._view.copied_id == prompt_id:
            self._cancel_timer(_COPIED_TIMER)
        self._view.forget(prompt_id, self._prompts)
        logger.debug("Deleted prompt %s", prompt_id)
        self._changed(prompt_id)
        return True

    def move_prompt(self, prompt_id: str, index: int) -> bool:
        """Move a prompt to *index* (clamped) in manual ordering."""
        if self._ordering is not OrderingPolicy.MANUAL:
            raise PromptStoreError("Prompts can only be reordered with manual ordering")
        prompt = self._lookup(prompt_id, "move")
        if prompt is None:
            return False
        current = self._prompts.index(prompt)
        target = max(0, min(index, len(self._prompts) - 1))
        if current == target:
            return True
        self._prompts.pop(current)
        self._prompts.insert(target, prompt)
        self._changed(prompt_id)
        return True

    async def record_copy(self, prompt_id: str) -> bool:
        """Copy a prompt's content to the clipboard and count the copy.

        Clipboard failures leave counters untouched and emit ``COPY_FAILED``.
        """
        prompt = self._lookup(prompt_id, "copy")
        if prompt is None:
            return False
        if self._clipboard is None:
            raise PromptStoreError("No clipboard configured for this prompt store")
        try:
            await self._clipboard.write_text(prompt.content)
        except ClipboardError as exc:
            logger.warning("Unable to copy prompt %s: %s", prompt_id, exc)
            self._emit(StoreEventKind.COPY_FAILED, prompt_id=prompt_id, error=exc)
            return False
        # The prompt may have been deleted or replaced by a reload while awaiting.
        prompt = self._find(prompt_id)
        if prompt is None or self._state not in MUTABLE_STATES:
            return False
        prompt.record_copy(self._clock())
        self._view.copied_id = prompt_id
        self._call_later(
            _COPIED_TIMER,
            self._copy_feedback_delay,
            lambda: self._clear_copied(prompt_id),
        )
        self._changed(prompt_id)
        self._emit(StoreEventKind.COPIED, prompt_id=prompt_id)
        return True

    def _clear_copied(self, prompt_id: str) -> None:
        if self._view.copied_id == prompt_id:
            self._view.copied_id = None
            self._view_changed(prompt_id)

    def record_search_match(self, query: str | None = None) -> int:
        """Count a search hit for every prompt matching *query*.

        The same normalised query is only counted once in a row; blank queries
        count nothing. Returns the number of prompts updated.
        """
        self._require_mutable()
        normalized = normalize_query(self._view.search if query is None else query)
        if not normalized or normalized == self._last_recorded_search:
            return 0
        self._last_recorded_search = normalized
        matches = filter_prompts(self._prompts, normalized)
        if not matches:
            return 0
        now = self._clock()
        for prompt in matches:
            prompt.record_search_match(now)
        self._changed()
        return len(matches)

    # View state --------------------------------------------------------- #

    def select_prompt(self, prompt_id: str | None) -> bool:
        if prompt_id is not None and self._find(prompt_id) is None:
            logger.warning("Cannot select unknown prompt %s", prompt_id)
            return False
        if self._view.selected_id != prompt_id:
            self._view.selected_id = prompt_id
            self._view_changed(prompt_id)
        return True

    def toggle_expanded(self, prompt_id: str) -> bool:
        if self._find(prompt_id) is None:
            logger.warning("Cannot expand unknown prompt %s", prompt_id)
            return False
        self._view.expanded_id = None if self._view.expanded_id == prompt_id else prompt_id
        self._view_changed(prompt_id)
        return True

    def set_search(self, text: str) -> None:
        if self._view.search != text:
            self._view.search = text
            self._view_changed()

    def start_edit_title(self, prompt_id: str) -> bool:
        prompt = self._find(prompt_id)
        if prompt is None:
            logger.warning("Cannot edit title of unknown prompt %s", prompt_id)
            return False
        self._view.editing_title_id = prompt_id
        self._view.editing_title_value = prompt.title
        self._view_changed(prompt_id)
        return True

    def set_editing_title_value(self, value: str) -> None:
        if self._view.editing_title_id is None:
            return
        self._view.editing_title_value = value
        self._view_changed(self._view.editing_title_id)

    def cancel_edit_title(self) -> None:
        if self._view.editing_title_id is None:
            return
        prompt_id = self._view.editing_title_id
        self._view.editing_title_id = None
        self._view.editing_title_value = ""
        self._view_changed(prompt_id)

    def request_delete_confirm(self, prompt_id: str) -> bool:
        """Arm the two-step delete for *prompt_id*; it disarms on its own."""
        if self._find(prompt_id) is None:
            logger.warning("Cannot arm delete for unknown prompt %s", prompt_id)
            return False
        self._view.delete_confirm_id = prompt_id
        self._call_later(
            _DELETE_CONFIRM_TIMER,
            self._delete_confirm_delay,
            lambda: self._disarm_delete(prompt_id),
        )
        self._view_changed(prompt_id)
        return True

    def _disarm_delete(self, prompt_id: str) -> None:
        if self._view.delete_confirm_id == prompt_id:
            self._view.delete_confirm_id = None
            self._view_changed(prompt_id)


__all__ = [
    "MUTABLE_STATES",
    "PromptStore",
    "StoreEvent",
    "StoreEventKind",
    "StoreState",
    "ViewState",
    "filter_prompts",
    "normalize_query",
    "sample_prompts",
]
