"""Tests for the in-memory vector store."""

import pytest

from services.embedding.EmbeddingService import EmbeddingService
from services.vector_store.VectorStore import VectorStore
from shared.models.document import VectorDocument


class CountingEmbedding(EmbeddingService):
    def __init__(self, helper_config):
        super().__init__(helper_config)
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return await super().embed(text)


@pytest.fixture
def embedding(helper_config):
    return CountingEmbedding(helper_config)


@pytest.fixture
def store(helper_config, embedding):
    return VectorStore(helper_config, embedding)


async def test_search_on_empty_store_skips_embedding(store, embedding):
    assert await store.search("anything") == []
    assert embedding.calls == []


async def test_upsert_embeds_summary_not_content(store, embedding):
    document = await store.do_upsert("a.md", "full content", "short summary", "h1")
    assert embedding.calls == ["short summary"]
    assert document.content == "full content"
    assert document.hash == "h1"
    assert store.get_document_count() == 1


async def test_upsert_replaces_same_path(store):
    await store.do_upsert("a.md", "v1", "first version", "h1")
    await store.do_upsert("a.md", "v2", "second version", "h2")
    assert store.get_document_count() == 1
    assert store.has_unchanged("a.md", "h2")
    assert not store.has_unchanged("a.md", "h1")


async def test_has_unchanged_for_unknown_path(store):
    assert not store.has_unchanged("missing.md", "h1")


async def test_search_ranks_by_similarity(store):
    await store.do_upsert("garden.md", "G", "tomatoes basil watering garden", "1")
    await store.do_upsert("python.md", "P", "python asyncio httpx streaming", "2")
    await store.do_upsert("travel.md", "T", "train tickets lisbon trip", "3")

    hits = await store.search("python streaming", k=2)

    assert len(hits) == 2
    assert hits[0].path == "python.md"
    assert hits[0].content == "P"
    assert hits[0].score >= hits[1].score


async def test_search_limits_to_k(store):
    for i in range(5):
        await store.do_upsert(f"n{i}.md", "c", f"note number {i}", str(i))
    assert len(await store.search("note", k=3)) == 3
    assert len(await store.search("note", k=10)) == 5


async def test_search_skips_mismatched_dimensions(store):
    await store.do_upsert("local.md", "L", "alpha beta", "1")
    # a record embedded by a remote model with another dimension
    store._documents["remote.md"] = VectorDocument(
        path="remote.md", content="R", summary="alpha", embedding=[1.0, 0.0, 0.0], hash="2"
    )
    hits = await store.search("alpha")
    assert [hit.path for hit in hits] == ["local.md"]


async def test_remove_and_clear(store):
    await store.do_upsert("a.md", "A", "a", "1")
    await store.do_upsert("b.md", "B", "b", "2")
    assert store.remove("a.md") is True
    assert store.remove("a.md") is False
    assert store.list_paths() == ["b.md"]
    store.clear()
    assert store.get_document_count() == 0


async def test_snapshot_and_restore(helper_config, store, embedding):
    await store.do_upsert("a.md", "A content", "a summary", "h1")
    snapshot = store.snapshot()
    assert snapshot["version"] == "1.0"
    assert snapshot["timestamp"] > 0
    assert snapshot["documents"][0]["path"] == "a.md"

    restored = VectorStore(helper_config, embedding)
    assert restored.restore(snapshot) == 1
    assert restored.has_unchanged("a.md", "h1")


def test_restore_ignores_invalid_payload(store):
    assert store.restore(None) == 0
    assert store.restore({"version": "1.0"}) == 0
    assert store.get_document_count() == 0


async def test_query_word_ranks_its_document_first(store):
    await store.do_upsert("A.md", "cat dog", "cat dog", "ha")
    await store.do_upsert("B.md", "airplane jet", "airplane jet", "hb")

    hits = await store.search("dog", k=2)

    assert [hit.path for hit in hits] == ["A.md", "B.md"]
    assert hits[0].score > hits[1].score
