"""Loading, debounced autosave and cross-window reconciliation for the prompt store.

The store runs on one asyncio loop. Backend calls are pushed to a worker thread
with :func:`asyncio.to_thread` and serialised through a single lock, so a
forced flush always waits for an in-flight write before writing again.

Concurrency across windows is optimistic: the last completed write wins and
other stores reload when they see a ``PromptsChangedEvent`` from a different
source. Unsaved edits in one window can be overwritten by another window's
save; stores do not merge concurrent edits.

Updates:
  v0.3.1 - 2026-10-18 - Report unexpected backend errors as load failures instead of stalling.
  v0.3.0 - 2026-10-15 - Defer external reloads that arrive during the initial load.
  v0.2.0 - 2026-10-13 - Skip re-writing freshly reloaded data and keep the debounce cancelable.
  v0.1.0 - 2026-10-08 - Extract load/save coordination from the store.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from core.events import PromptsChangedEvent
from core.exceptions import PersistenceReadError, PersistenceWriteError, PromptStoreError
from models.prompt_model import prompts_structurally_equal

from .events import StoreEvent, StoreEventKind
from .state import MUTABLE_STATES, StoreState, ViewState

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable, Coroutine
    from typing import Any

    from core.events import EventHub, PromptsChangedBus, Subscription
    from core.repository import PromptBackend
    from models.prompt_model import Prompt

logger = logging.getLogger("promptbook.store")

__all__ = ["SyncMixin"]


class SyncMixin:
    """Mixin owning persistence scheduling and reload reconciliation."""

    _backend: PromptBackend
    _bus: PromptsChangedBus
    _bus_subscription: Subscription[PromptsChangedEvent] | None
    _source_id: str
    _events: EventHub[StoreEvent]
    _prompts: list[Prompt]
    _view: ViewState
    _state: StoreState
    _autosave_delay: float
    _seed_factory: Callable[[], list[Prompt]] | None
    _loop: asyncio.AbstractEventLoop | None
    _write_lock: asyncio.Lock
    _autosave_handle: asyncio.TimerHandle | None
    _timer_handles: dict[str, asyncio.TimerHandle]
    _tasks: set[asyncio.Task[Any]]
    _revision: int
    _saved_revision: int
    _reload_requested: bool
    _ordered: Callable[[list[Prompt]], list[Prompt]]

    def _initialise_sync(self) -> None:
        self._loop = None
        self._write_lock = asyncio.Lock()
        self._autosave_handle = None
        self._timer_handles = {}
        self._tasks = set()
        self._revision = 0
        self._saved_revision = 0
        self._reload_requested = False
        self._bus_subscription = self._bus.subscribe(self._on_prompts_changed)

    def _emit(
        self,
        kind: StoreEventKind,
        prompt_id: str | None = None,
        error: Exception | None = None,
    ) -> None:
        self._events.publish(StoreEvent(kind=kind, prompt_id=prompt_id, error=error))

    # Status ------------------------------------------------------------- #

    @property
    def is_dirty(self) -> bool:
        """Return True when in-memory changes have not been written yet."""
        return self._revision != self._saved_revision

    @property
    def has_pending_save(self) -> bool:
        """Return True while a debounced autosave is waiting to fire."""
        return self._autosave_handle is not None

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = self._require_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _call_later(self, name: str, delay: float, callback: Callable[[], None]) -> None:
        """Schedule *callback*, replacing any timer previously registered as *name*."""
        self._cancel_timer(name)

        def _fire() -> None:
            self._timer_handles.pop(name, None)
            callback()

        self._timer_handles[name] = self._require_loop().call_later(delay, _fire)

    def _cancel_timer(self, name: str) -> None:
        handle = self._timer_handles.pop(name, None)
        if handle is not None:
            handle.cancel()

    # Loading ------------------------------------------------------------ #

    async def _fetch(self) -> list[Prompt]:
        """Read the backend on a worker thread; any failure surfaces as a read error."""
        try:
            async with self._write_lock:
                return await asyncio.to_thread(self._backend.load)
        except PersistenceReadError:
            raise
        except Exception as exc:
            logger.exception("Prompt backend failed unexpectedly while loading")
            raise PersistenceReadError(f"Unable to read prompts: {exc}") from exc

    async def load(self) -> bool:
        """Fetch the collection from the backend and make the store ready.

        Read failures are logged and reported through a ``LOAD_FAILED`` event;
        the store keeps its last-known state and stays usable. An empty
        backend is seeded with the sample prompts when seeding is enabled.
        """
        if self._state is StoreState.CLOSED:
            raise PromptStoreError("Cannot load a closed prompt store")
        if self._state in MUTABLE_STATES:
            return await self.reload()
        self._require_loop()
        self._state = StoreState.LOADING
        try:
            loaded = await self._fetch()
        except PersistenceReadError as exc:
            logger.error("Unable to load prompts: %s", exc)
            self._state = StoreState.READY
            self._emit(StoreEventKind.LOAD_FAILED, error=exc)
            self._run_deferred_reload()
            return False

        if not loaded and self._seed_factory is not None:
            self._state = StoreState.EMPTY_SEEDED
            self._prompts = self._ordered(self._seed_factory())
            self._revision += 1
            self._view.reconcile(self._prompts)
            logger.info("Prompt library is empty; writing %d sample prompts", len(self._prompts))
            await self._write_snapshot()
            self._state = StoreState.READY
            self._emit(StoreEventKind.SEEDED)
        else:
            self._prompts = self._ordered(list(loaded))
            self._view.reconcile(self._prompts)
            self._state = StoreState.READY
            logger.debug("Loaded %d prompts", len(self._prompts))
        self._emit(StoreEventKind.LOADED)
        self._run_deferred_reload()
        return True

    async def reload(self) -> bool:
        """Re-fetch from the backend and replace state when it differs structurally.

        Returns True when the in-memory collection was replaced. An identical
        collection is a no-op: no events fire and view state is untouched.
        """
        if self._state not in MUTABLE_STATES:
            if self._state is StoreState.LOADING:
                self._reload_requested = True
            return False
        if self._state is StoreState.RELOADING:
            self._reload_requested = True
            return False

        self._state = StoreState.RELOADING
        try:
            loaded = await self._fetch()
        except PersistenceReadError as exc:
            logger.warning("Reload failed; keeping current prompts: %s", exc)
            self._finish_reload()
            self._emit(StoreEventKind.LOAD_FAILED, error=exc)
            return False

        if self._state is StoreState.CLOSED:
            return False
        incoming = self._ordered(list(loaded))
        if prompts_structurally_equal(self._prompts, incoming):
            self._finish_reload()
            return False

        self._prompts = incoming
        # The loaded data is already on disk; drop any pending write of the old state.
        self._cancel_autosave()
        self._saved_revision = self._revision
        self._view.reconcile(self._prompts)
        self._finish_reload()
        logger.debug("Reloaded %d prompts after external change", len(self._prompts))
        self._emit(StoreEventKind.RELOADED)
        return True

    def _finish_reload(self) -> None:
        if self._state is StoreState.RELOADING:
            self._state = StoreState.READY
        self._run_deferred_reload()

    def _run_deferred_reload(self) -> None:
        if self._reload_requested and self._state is StoreState.READY:
            self._reload_requested = False
            self._spawn(self.reload())

    def _on_prompts_changed(self, event: PromptsChangedEvent) -> None:
        if event.source == self._source_id:
            return
        if self._state in (StoreState.CLOSED, StoreState.UNINITIALIZED) or self._loop is None:
            return
        if self._state in (StoreState.LOADING, StoreState.EMPTY_SEEDED, StoreState.RELOADING):
            self._reload_requested = True
            return
        self._loop.call_soon_threadsafe(self._spawn_reload)

    def _spawn_reload(self) -> None:
        self._spawn(self.reload())

    # Saving ------------------------------------------------------------- #

    def _mark_dirty(self) -> None:
        self._revision += 1
        self._schedule_autosave()

    def _schedule_autosave(self) -> None:
        """(Re)start the debounce timer; the write happens once edits go quiet."""
        loop = self._require_loop()
        self._cancel_autosave()
        self._autosave_handle = loop.call_later(self._autosave_delay, self._on_autosave_due)

    def _cancel_autosave(self) -> bool:
        handle = self._autosave_handle
        self._autosave_handle = None
        if handle is None:
            return False
        handle.cancel()
        return True

    def _on_autosave_due(self) -> None:
        self._autosave_handle = None
        self._spawn(self._write_snapshot())

    async def _write_snapshot(self) -> bool:
        """Write the whole collection and notify other stores on success."""
        async with self._write_lock:
            revision = self._revision
            snapshot = [prompt.clone() for prompt in self._prompts]
            try:
                await asyncio.to_thread(self._backend.save, snapshot, source=self._source_id)
            except PersistenceWriteError as exc:
                # Memory stays authoritative; the next mutation or forced flush retries.
                logger.warning("Unable to save prompts: %s", exc)
                self._emit(StoreEventKind.SAVE_FAILED, error=exc)
                return False
            self._saved_revision = max(self._saved_revision, revision)
        self._emit(StoreEventKind.SAVED)
        self._bus.publish(PromptsChangedEvent(source=self._source_id))
        return True

    async def force_save(self) -> bool:
        """Write immediately, bypassing the debounce.

        Waits for any in-flight write first. The pending autosave is cancelled
        when no further edit arrived while writing. Returns whether the write
        succeeded; False before the first load.
        """
        if self._state not in MUTABLE_STATES:
            return False
        self._cancel_autosave()
        saved = await self._write_snapshot()
        if saved and not self.is_dirty:
            self._cancel_autosave()
        return saved

    async def close(self) -> None:
        """Tear down timers and subscriptions, flushing unsaved edits first."""
        if self._state is StoreState.CLOSED:
            return
        if self._bus_subscription is not None:
            self._bus_subscription.close()
            self._bus_subscription = None
        for name in list(self._timer_handles):
            self._cancel_timer(name)
        self._cancel_autosave()
        if self._state in MUTABLE_STATES and self.is_dirty:
            await self._write_snapshot()
        self._state = StoreState.CLOSED
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
