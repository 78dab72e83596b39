"""Tests for persisted application state."""

import asyncio
import json
import os

from shared.storage.StateStore import SECTION_FILTERS, SECTION_THREADS, SECTION_VECTOR_INDEX, StateStore


async def test_missing_file_is_empty_state(state_store):
    await state_store.load()
    assert await state_store.get_section(SECTION_THREADS) is None
    assert await state_store.get_section(SECTION_THREADS, default=[]) == []


async def test_corrupt_file_is_empty_state(helper_config, state_path):
    os.makedirs(os.path.dirname(state_path), exist_ok=True)
    with open(state_path, "w", encoding="utf-8") as f:
        f.write("{not json")
    store = StateStore(helper_config, path=state_path)
    await store.load()
    assert await store.get_section(SECTION_FILTERS) is None


async def test_sections_are_written_to_disk(state_store, state_path):
    await state_store.set_section(SECTION_FILTERS, {"blacklist_files": ["x.md"]})
    with open(state_path, encoding="utf-8") as f:
        assert json.load(f) == {"filters": {"blacklist_files": ["x.md"]}}


async def test_concurrent_writes_to_different_sections(helper_config, state_store, state_path):
    await asyncio.gather(
        state_store.set_section(SECTION_FILTERS, {"a": 1}),
        state_store.set_section(SECTION_THREADS, [{"id": "t"}]),
    )
    reloaded = StateStore(helper_config, path=state_path)
    await reloaded.load()
    assert await reloaded.get_section(SECTION_FILTERS) == {"a": 1}
    assert await reloaded.get_section(SECTION_THREADS) == [{"id": "t"}]


async def test_get_section_returns_a_copy(state_store):
    await state_store.set_section(SECTION_THREADS, [{"id": "t"}])
    copy = await state_store.get_section(SECTION_THREADS)
    copy.append({"id": "other"})
    assert await state_store.get_section(SECTION_THREADS) == [{"id": "t"}]


def test_path_from_env(helper_config, clean_env, tmp_path):
    clean_env.setenv("STATE_FILE", str(tmp_path / "custom.json"))
    assert StateStore(helper_config).get_path() == str(tmp_path / "custom.json")


def test_default_path_below_root_dir(helper_config, tmp_path):
    assert StateStore(helper_config).get_path() == os.path.join(str(tmp_path), "data", "state.json")


async def test_large_write_does_not_block_the_event_loop(state_store, state_path):
    ticks = 0
    stop = asyncio.Event()

    async def ticker():
        nonlocal ticks
        while not stop.is_set():
            ticks += 1
            await asyncio.sleep(0)

    index = {"documents": [{"path": f"doc-{i}.md", "embedding": [0.125] * 300} for i in range(2000)]}
    ticker_task = asyncio.create_task(ticker())
    await asyncio.sleep(0)
    ticks_before = ticks
    try:
        await state_store.set_section(SECTION_VECTOR_INDEX, index)
    finally:
        stop.set()
        await ticker_task

    assert ticks > ticks_before
    with open(state_path, encoding="utf-8") as f:
        assert len(json.load(f)["vectorIndex"]["documents"]) == 2000
