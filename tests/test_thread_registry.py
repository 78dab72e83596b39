"""Tests for conversation threads and their persistence."""

import pytest

from services.vault_chat.ThreadRegistry import ThreadRegistry, make_thread_name
from shared.errors import ThreadBusyError, ThreadNotFoundError
from shared.storage.StateStore import SECTION_THREADS, StateStore


@pytest.fixture
def registry(helper_config, state_store):
    return ThreadRegistry(helper_config, state_store)


class TestMakeThreadName:
    def test_short_message_kept(self):
        assert make_thread_name("What is in my notes?") == "What is in my notes?"

    def test_exactly_fifty_characters_kept(self):
        message = "a" * 50
        assert make_thread_name(message) == message

    def test_long_message_cut_with_ellipsis(self):
        name = make_thread_name("b" * 51)
        assert name == "b" * 47 + "..."
        assert len(name) == 50


async def test_load_creates_default_thread(registry, state_store):
    active = await registry.load()
    assert active.name == "Chat 1"
    assert registry.get_active_thread().id == active.id
    assert len(await state_store.get_section(SECTION_THREADS)) == 1


async def test_load_activates_most_recent(helper_config, state_store):
    await state_store.set_section(
        SECTION_THREADS,
        [
            {"id": "old", "name": "Old", "history": [], "created_at": 1, "updated_at": 10},
            {"id": "new", "name": "New", "history": [], "created_at": 2, "updated_at": 20},
        ],
    )
    registry = ThreadRegistry(helper_config, state_store)
    assert (await registry.load()).id == "new"
    assert [t.id for t in registry.list_threads()] == ["old", "new"]


async def test_create_names_sequentially_and_activates(registry):
    await registry.load()
    second = await registry.create_thread()
    assert second.name == "Chat 2"
    assert registry.get_active_thread().id == second.id
    assert second.id.startswith("thread-")


async def test_unknown_thread(registry):
    await registry.load()
    with pytest.raises(ThreadNotFoundError):
        registry.get_thread("nope")
    with pytest.raises(ThreadNotFoundError):
        await registry.rename_thread("nope", "x")


async def test_delete_active_switches_to_first_remaining(registry):
    first = await registry.load()
    second = await registry.create_thread()
    active = await registry.delete_thread(second.id)
    assert active.id == first.id
    assert [t.id for t in registry.list_threads()] == [first.id]


async def test_delete_last_thread_creates_new_one(registry):
    only = await registry.load()
    active = await registry.delete_thread(only.id)
    assert active.id != only.id
    assert active.name == "Chat 1"
    assert len(registry.list_threads()) == 1


async def test_streaming_flag(registry):
    thread = await registry.load()
    registry.begin_streaming(thread.id)
    assert registry.is_streaming(thread.id)
    with pytest.raises(ThreadBusyError):
        registry.begin_streaming(thread.id)
    registry.end_streaming(thread.id)
    assert not registry.is_streaming(thread.id)


async def test_streaming_flag_is_not_persisted(registry, state_store):
    thread = await registry.load()
    registry.begin_streaming(thread.id)
    await registry.rename_thread(thread.id, "Renamed")
    stored = await state_store.get_section(SECTION_THREADS)
    assert "is_streaming" not in stored[0]


async def test_auto_name_applies_once(registry):
    thread = await registry.load()
    assert await registry.apply_auto_name(thread.id, "How do I bake bread?") is True
    assert thread.name == "How do I bake bread?"
    await registry.append_exchange(thread.id, "How do I bake bread?", "Knead it.")
    assert await registry.apply_auto_name(thread.id, "second question") is False
    assert thread.name == "How do I bake bread?"


async def test_auto_name_skips_renamed_threads(registry):
    thread = await registry.load()
    await registry.rename_thread(thread.id, "Bread project")
    assert await registry.apply_auto_name(thread.id, "first") is False
    assert thread.name == "Bread project"


async def test_history_persists_across_reload(helper_config, registry, state_path):
    thread = await registry.load()
    await registry.append_exchange(thread.id, "Q1", "A1")

    reloaded = ThreadRegistry(helper_config, StateStore(helper_config, path=state_path))
    active = await reloaded.load()
    assert active.id == thread.id
    assert [(m.role, m.content) for m in active.history] == [("user", "Q1"), ("assistant", "A1")]


async def test_clear_and_export(registry):
    thread = await registry.load()
    await registry.append_exchange(thread.id, "Hi", "Hello!")
    assert registry.export_markdown(thread.id) == (
        "# Chat 1\n\n**You:** Hi\n\n---\n\n**Assistant:** Hello!\n\n---\n\n"
    )
    cleared = await registry.clear_thread(thread.id)
    assert cleared.history == []
