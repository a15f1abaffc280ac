"""Tests for PromptStore mutations, autosave and reload reconciliation."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from conftest import FakeBackend, FakeClipboard

from config import OrderingPolicy, RankingWeights
from core.events import EventHub, PromptsChangedEvent
from core.exceptions import PersistenceReadError, PromptNotFoundError, PromptStoreError
from core.prompt_store import PromptStore, StoreEvent, StoreEventKind, StoreState
from core.prompt_store.seed import sample_prompts
from models.prompt_model import NEW_PROMPT_CONTENT, UNNAMED_PROMPT_TITLE, Prompt

SETTLE = 0.08


def _prompt(prompt_id: str, title: str, content: str = "", **kwargs: object) -> Prompt:
    return Prompt(
        id=prompt_id,
        title=title,
        content=content,
        updated_at=datetime(2026, 1, 1, tzinfo=UTC),
        **kwargs,  # type: ignore[arg-type]
    )


def _library() -> list[Prompt]:
    return [
        _prompt("a", "Bug Triage", "Find the root cause of this bug"),
        _prompt("b", "PR Review", "Review this pull request"),
        _prompt("c", "Release Notes", "Summarise commits"),
    ]


def _store(backend: FakeBackend, **kwargs: object) -> PromptStore:
    kwargs.setdefault("bus", EventHub())
    kwargs.setdefault("clipboard", FakeClipboard())
    kwargs.setdefault("autosave_delay", 0.01)
    kwargs.setdefault("seed_prompts", None)
    return PromptStore(backend, **kwargs)  # type: ignore[arg-type]


def _record(store: PromptStore) -> list[StoreEvent]:
    events: list[StoreEvent] = []
    store.subscribe(events.append)
    return events


def _kinds(events: list[StoreEvent]) -> list[StoreEventKind]:
    return [event.kind for event in events]


def test_load_seeds_empty_library() -> None:
    backend = FakeBackend()

    async def scenario() -> None:
        store = _store(backend, seed_prompts=sample_prompts)
        events = _record(store)
        assert await store.load() is True
        assert store.state is StoreState.READY
        assert [prompt.title for prompt in store.prompts] == [
            "Bug Triage",
            "PR Review",
            "Release Notes",
        ]
        assert backend.save_calls == 1
        assert not store.is_dirty
        assert store.view.selected_id == store.prompts[0].id
        assert store.view.expanded_id == store.prompts[0].id
        assert StoreEventKind.SEEDED in _kinds(events)
        assert _kinds(events)[-1] is StoreEventKind.LOADED
        await store.close()

    asyncio.run(scenario())


def test_load_existing_library_does_not_write() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend, seed_prompts=sample_prompts)
        assert await store.load() is True
        assert [prompt.id for prompt in store.prompts] == ["a", "b", "c"]
        assert backend.save_calls == 0
        await store.close()

    asyncio.run(scenario())


def test_load_failure_keeps_store_usable_without_seeding() -> None:
    backend = FakeBackend()
    backend.fail_load = True

    async def scenario() -> None:
        store = _store(backend, seed_prompts=sample_prompts)
        events = _record(store)
        assert await store.load() is False
        assert store.state is StoreState.READY
        assert store.prompts == []
        assert backend.save_calls == 0
        failure = events[-1]
        assert failure.kind is StoreEventKind.LOAD_FAILED
        assert failure.error is not None
        await store.close()

    asyncio.run(scenario())


def test_add_prompt_returns_new_id_with_zero_counters() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        first = store.add_prompt()
        second = store.add_prompt()
        assert first != second
        assert first not in {"a", "b", "c"}
        created = store.get(second)
        assert created.title == UNNAMED_PROMPT_TITLE
        assert created.content == NEW_PROMPT_CONTENT
        assert created.copy_count == 0
        assert created.search_count == 0
        assert store.prompts[0].id == second
        assert store.view.selected_id == second
        assert store.view.expanded_id == second
        assert store.is_dirty
        assert store.has_pending_save
        await asyncio.sleep(SETTLE)
        assert backend.save_calls == 1
        assert not store.is_dirty
        assert [prompt.id for prompt in backend.stored][:2] == [second, first]
        await store.close()

    asyncio.run(scenario())


def test_rapid_edits_coalesce_into_one_write() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend, autosave_delay=0.03)
        await store.load()
        for text in ("d", "dr", "dra", "draft"):
            assert store.update_content("a", text)
        await asyncio.sleep(0.15)
        assert backend.save_calls == 1
        assert backend.stored[0].content == "draft"
        await store.close()

    asyncio.run(scenario())


def test_force_save_cancels_pending_autosave() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend, autosave_delay=0.05)
        await store.load()
        store.update_content("b", "updated")
        assert store.has_pending_save
        assert await store.force_save() is True
        assert not store.has_pending_save
        assert backend.save_calls == 1
        await asyncio.sleep(0.12)
        assert backend.save_calls == 1
        await store.close()

    asyncio.run(scenario())


def test_force_save_before_load_returns_false() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        assert await store.force_save() is False
        assert backend.save_calls == 0

    asyncio.run(scenario())


def test_write_failure_keeps_memory_and_does_not_retry() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        events = _record(store)
        await store.load()
        backend.fail_save = True
        store.update_content("a", "unsaved body")
        await asyncio.sleep(SETTLE)
        assert backend.save_calls == 1
        assert StoreEventKind.SAVE_FAILED in _kinds(events)
        assert store.is_dirty
        assert store.get("a").content == "unsaved body"
        await asyncio.sleep(SETTLE)
        assert backend.save_calls == 1

        backend.fail_save = False
        assert await store.force_save() is True
        assert not store.is_dirty
        assert backend.stored[0].content == "unsaved body"
        await store.close()

    asyncio.run(scenario())


def test_record_copy_updates_counters_and_clears_feedback() -> None:
    backend = FakeBackend(_library())
    clipboard = FakeClipboard()

    async def scenario() -> None:
        store = _store(backend, clipboard=clipboard, copy_feedback_delay=0.02)
        events = _record(store)
        await store.load()
        assert await store.record_copy("b") is True
        copied = store.get("b")
        assert clipboard.texts == ["Review this pull request"]
        assert copied.copy_count == 1
        assert copied.last_copied_at is not None
        assert store.view.copied_id == "b"
        assert StoreEventKind.COPIED in _kinds(events)
        await asyncio.sleep(SETTLE)
        assert store.view.copied_id is None
        assert backend.stored[1].copy_count == 1
        await store.close()

    asyncio.run(scenario())


def test_record_copy_failure_leaves_counters_untouched() -> None:
    backend = FakeBackend(_library())
    clipboard = FakeClipboard()
    clipboard.fail = True

    async def scenario() -> None:
        store = _store(backend, clipboard=clipboard)
        events = _record(store)
        await store.load()
        assert await store.record_copy("a") is False
        assert store.get("a").copy_count == 0
        assert store.get("a").last_copied_at is None
        assert store.view.copied_id is None
        assert not store.is_dirty
        assert events[-1].kind is StoreEventKind.COPY_FAILED
        assert events[-1].prompt_id == "a"
        await store.close()

    asyncio.run(scenario())


def test_search_match_counts_each_query_once() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        assert store.record_search_match("review") == 1
        assert store.record_search_match("review") == 0
        assert store.record_search_match("  REVIEW ") == 0
        assert store.get("b").search_count == 1
        assert store.get("b").last_matched_search_at is not None
        assert store.record_search_match("   ") == 0

        assert store.record_search_match("this") == 2
        assert store.record_search_match("review") == 1
        assert store.get("b").search_count == 3
        assert store.get("c").search_count == 0
        await store.close()

    asyncio.run(scenario())


def test_search_match_uses_current_search_text() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        store.set_search("BUG")
        assert [prompt.id for prompt in store.filtered_view()] == ["a"]
        assert store.record_search_match() == 1
        assert store.get("a").search_count == 1
        await store.close()

    asyncio.run(scenario())


def test_filtered_view_blank_query_returns_full_collection() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        assert [prompt.id for prompt in store.filtered_view("  ")] == ["a", "b", "c"]
        assert [prompt.id for prompt in store.filtered_view("COMMITS")] == ["c"]
        await store.close()

    asyncio.run(scenario())


def test_reload_without_changes_is_a_no_op() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        store.select_prompt("c")
        events = _record(store)
        before = store.view
        assert await store.reload() is False
        assert events == []
        assert store.view == before
        await store.close()

    asyncio.run(scenario())


def test_reload_replaces_state_and_reconciles_selection() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend, autosave_delay=0.05)
        await store.load()
        store.select_prompt("b")
        store.toggle_expanded("c")
        store.update_content("a", "local edit")

        external = _library()
        external[0].content = "edited elsewhere"
        del external[1]
        backend.replace(external)

        events = _record(store)
        assert await store.reload() is True
        assert _kinds(events) == [StoreEventKind.RELOADED]
        assert store.get("a").content == "edited elsewhere"
        assert store.view.selected_id == "a"
        assert store.view.expanded_id == "c"
        assert not store.is_dirty
        assert not store.has_pending_save
        await asyncio.sleep(0.1)
        assert backend.save_calls == 0
        await store.close()

    asyncio.run(scenario())


def test_delete_cascades_view_state() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        await store.record_copy("b")
        store.select_prompt("b")
        store.toggle_expanded("b")
        store.start_edit_title("b")
        store.request_delete_confirm("b")
        assert store.view.delete_confirm_id == "b"

        assert store.delete_prompt("b") is True
        view = store.view
        assert [prompt.id for prompt in store.prompts] == ["a", "c"]
        assert view.selected_id == "a"
        assert view.expanded_id == "a"
        assert view.editing_title_id is None
        assert view.copied_id is None
        assert view.delete_confirm_id is None
        with pytest.raises(PromptNotFoundError):
            store.get("b")
        await store.close()

    asyncio.run(scenario())


def test_deleting_last_prompt_empties_selection() -> None:
    backend = FakeBackend([_prompt("only", "Only")])

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        assert store.delete_prompt("only") is True
        assert store.prompts == []
        assert store.view.selected_id is None
        assert store.view.expanded_id is None
        await store.close()

    asyncio.run(scenario())


def test_delete_confirmation_disarms_after_delay() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend, delete_confirm_delay=0.02)
        await store.load()
        assert store.request_delete_confirm("c") is True
        await asyncio.sleep(SETTLE)
        assert store.view.delete_confirm_id is None
        await store.close()

    asyncio.run(scenario())


def test_unknown_ids_are_ignored() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        assert store.update_content("missing", "x") is False
        assert store.update_title("missing", "x") is False
        assert store.delete_prompt("missing") is False
        assert store.move_prompt("missing", 0) is False
        assert await store.record_copy("missing") is False
        assert store.select_prompt("missing") is False
        assert not store.is_dirty
        await store.close()

    asyncio.run(scenario())


def test_commit_title_normalises_and_saves_immediately() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend, autosave_delay=5.0)
        await store.load()
        store.start_edit_title("a")
        store.set_editing_title_value("   ")
        assert store.view.editing_title_value == "   "
        assert await store.commit_title("a") is True
        assert store.get("a").title == UNNAMED_PROMPT_TITLE
        assert store.view.editing_title_id is None
        assert backend.save_calls == 1
        assert backend.stored[0].title == UNNAMED_PROMPT_TITLE
        await store.close()

    asyncio.run(scenario())


def test_titles_are_kept_raw_while_typing() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        store.update_title("b", "")
        assert store.get("b").title == ""
        await asyncio.sleep(SETTLE)
        assert backend.stored[1].title == UNNAMED_PROMPT_TITLE
        await store.close()

    asyncio.run(scenario())


def test_cancel_edit_title_restores_view() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        store.start_edit_title("c")
        store.set_editing_title_value("Draft")
        store.cancel_edit_title()
        assert store.view.editing_title_id is None
        assert store.view.editing_title_value == ""
        assert store.get("c").title == "Release Notes"
        await store.close()

    asyncio.run(scenario())


def test_move_prompt_reorders_manual_collection() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        assert store.move_prompt("c", 0) is True
        assert [prompt.id for prompt in store.prompts] == ["c", "a", "b"]
        assert store.move_prompt("c", 99) is True
        assert [prompt.id for prompt in store.prompts] == ["a", "b", "c"]
        await store.force_save()
        assert [prompt.id for prompt in backend.stored] == ["a", "b", "c"]
        await store.close()

    asyncio.run(scenario())


def test_recent_ordering_sorts_by_update_and_rejects_moves() -> None:
    backend = FakeBackend(_library())
    ticks = iter(datetime(2026, 2, 1, tzinfo=UTC) + timedelta(minutes=i) for i in range(10))

    async def scenario() -> None:
        store = _store(backend, ordering=OrderingPolicy.RECENT, clock=lambda: next(ticks))
        await store.load()
        store.update_content("c", "newest")
        assert store.prompts[0].id == "c"
        store.update_content("b", "even newer")
        assert [prompt.id for prompt in store.prompts][:2] == ["b", "c"]
        with pytest.raises(PromptStoreError):
            store.move_prompt("a", 0)
        await store.close()

    asyncio.run(scenario())


def test_top_ranked_uses_supplied_weights() -> None:
    prompts = _library()
    prompts[0].copy_count = 1
    prompts[2].search_count = 10
    backend = FakeBackend(prompts)

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        now = datetime(2026, 3, 1, tzinfo=UTC)
        copy_heavy = RankingWeights(copy_weight=5.0, search_weight=0.1)
        assert [p.id for p in store.top_ranked(2, copy_heavy, now)] == ["a", "c"]
        search_heavy = RankingWeights(copy_weight=0.1, search_weight=1.0)
        assert [p.id for p in store.top_ranked(1, search_heavy, now)] == ["c"]
        assert store.top_ranked(0, search_heavy, now) == []
        await store.close()

    asyncio.run(scenario())


def test_stores_sync_through_bus_and_ignore_own_events() -> None:
    backend = FakeBackend(_library())
    bus: EventHub[PromptsChangedEvent] = EventHub()

    async def scenario() -> None:
        first = _store(backend, bus=bus, source_id="window-1")
        second = _store(backend, bus=bus, source_id="window-2")
        await first.load()
        await second.load()
        first_events = _record(first)
        second_events = _record(second)

        first.update_content("a", "shared edit")
        assert await first.force_save() is True
        await asyncio.sleep(SETTLE)

        assert second.get("a").content == "shared edit"
        assert StoreEventKind.RELOADED in _kinds(second_events)
        assert StoreEventKind.RELOADED not in _kinds(first_events)
        assert bus.history()[-1].source == "window-1"
        await first.close()
        await second.close()

    asyncio.run(scenario())


def test_external_change_during_initial_load_reloads_afterwards() -> None:
    backend = FakeBackend(_library())
    bus: EventHub[PromptsChangedEvent] = EventHub()

    async def scenario() -> None:
        store = _store(backend, bus=bus)
        load_task = asyncio.ensure_future(store.load())
        await asyncio.sleep(0)
        assert store.state is StoreState.LOADING
        changed = _library()
        changed[2].title = "Changelog"
        backend.replace(changed)
        bus.publish(PromptsChangedEvent(source="cli-42"))
        await load_task
        await asyncio.sleep(SETTLE)
        assert store.get("c").title == "Changelog"
        await store.close()

    asyncio.run(scenario())


def test_close_flushes_pending_edits_and_blocks_mutations() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend, autosave_delay=5.0)
        await store.load()
        store.update_content("c", "final words")
        await store.close()
        assert store.state is StoreState.CLOSED
        assert backend.save_calls == 1
        assert backend.stored[2].content == "final words"
        with pytest.raises(PromptStoreError):
            store.add_prompt()
        with pytest.raises(PromptStoreError):
            await store.load()

    asyncio.run(scenario())


def test_mutation_before_load_raises() -> None:
    store = _store(FakeBackend(_library()))
    with pytest.raises(PromptStoreError):
        store.add_prompt()


def test_unexpected_backend_error_is_reported_as_load_failure() -> None:
    backend = FakeBackend(_library())
    backend.load_error = OverflowError("timestamp out of range")

    async def scenario() -> None:
        store = _store(backend)
        events = _record(store)
        assert await store.load() is False
        assert store.state is StoreState.READY
        failure = events[-1]
        assert failure.kind is StoreEventKind.LOAD_FAILED
        assert isinstance(failure.error, PersistenceReadError)
        assert isinstance(failure.error.__cause__, OverflowError)

        backend.load_error = None
        assert await store.load() is True
        assert [prompt.id for prompt in store.prompts] == ["a", "b", "c"]
        await store.close()

    asyncio.run(scenario())


def test_unexpected_reload_error_returns_store_to_ready() -> None:
    backend = FakeBackend(_library())

    async def scenario() -> None:
        store = _store(backend)
        await store.load()
        events = _record(store)

        backend.load_error = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        assert await store.reload() is False
        assert store.state is StoreState.READY
        assert _kinds(events) == [StoreEventKind.LOAD_FAILED]
        assert [prompt.id for prompt in store.prompts] == ["a", "b", "c"]

        backend.load_error = None
        backend.replace(_library()[:1])
        assert await store.reload() is True
        assert [prompt.id for prompt in store.prompts] == ["a"]
        await store.close()

    asyncio.run(scenario())
