"""Tests for the index routes while a background job is starting up."""

import asyncio
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from conftest import MemorySource
from server.routers.IndexRouter import cancel_index, clear_index, index_status, start_index
from services.embedding.EmbeddingService import EmbeddingService
from services.vault_index.IndexService import IndexService
from services.vault_index.SummaryService import SummaryService
from services.vector_store.VectorStore import VectorStore
from shared.models.config import FilterConfig


class GatedSource(MemorySource):
    """Source whose listing waits until the test opens the gate."""

    def __init__(self, helper_config, files):
        super().__init__(helper_config, files)
        self.gate = asyncio.Event()

    async def list_candidates(self):
        await self.gate.wait()
        return await super().list_candidates()


@pytest.fixture
def source(helper_config):
    return GatedSource(helper_config, {"a.md": "alpha", "b.md": "beta"})


@pytest.fixture
def app(helper_config, logger, source, state_store):
    embedding_service = EmbeddingService(helper_config)
    vector_store = VectorStore(helper_config, embedding_service)
    index_service = IndexService(
        helper_config,
        source=source,
        vector_store=vector_store,
        summary_service=SummaryService(helper_config),
        state_store=state_store,
        filter_config=FilterConfig(),
    )
    state = SimpleNamespace(
        logging=logger,
        helper_config=helper_config,
        state_store=state_store,
        embedding_service=embedding_service,
        vector_store=vector_store,
        index_service=index_service,
        index_task=None,
    )
    return SimpleNamespace(state=state)


@pytest.fixture
def request_(app):
    return Request({"type": "http", "app": app})


async def test_job_counts_as_running_while_listing(request_, app, source):
    status = await start_index(request_)
    assert status.running is True
    assert (await index_status(request_)).running is True

    with pytest.raises(HTTPException) as exc_info:
        await start_index(request_)
    assert exc_info.value.status_code == 409

    with pytest.raises(HTTPException) as exc_info:
        await clear_index(request_)
    assert exc_info.value.status_code == 409

    source.gate.set()
    await app.state.index_task
    status = await index_status(request_)
    assert status.running is False
    assert status.document_count == 2


async def test_cancel_while_listing_stops_the_job(request_, app, source):
    await start_index(request_)
    assert await cancel_index(request_) == {"cancelled": True}

    with pytest.raises(asyncio.CancelledError):
        await app.state.index_task
    status = await index_status(request_)
    assert status.running is False
    assert status.document_count == 0
    assert source.read_calls == []
