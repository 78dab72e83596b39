"""Tests for embedding strategy selection and the local fallback."""

from conftest import FakeLLMClient
from services.embedding.EmbeddingService import EmbeddingService
from shared.errors import BackendError
from shared.helper.HelperVector import local_embedding


async def test_without_client_uses_local(helper_config):
    service = EmbeddingService(helper_config)
    assert service.get_strategy_name() == "local"
    assert await service.embed("hello vault") == local_embedding("hello vault")


async def test_remote_when_supported_and_keyed(helper_config):
    client = FakeLLMClient(helper_config)
    client.embed_vector = [0.5, 0.5]
    service = EmbeddingService(helper_config, llm_client=client)

    assert service.get_strategy_name() == "remote:fake-embed"
    assert await service.embed("hello") == [0.5, 0.5]
    assert client.embed_calls == [["hello"]]


async def test_no_api_key_means_local(helper_config):
    client = FakeLLMClient(helper_config, api_key="")
    service = EmbeddingService(helper_config, llm_client=client)

    assert service.get_strategy_name() == "local"
    assert len(await service.embed("hello")) == 300
    assert client.embed_calls == []


async def test_backend_without_embeddings_means_local(helper_config):
    client = FakeLLMClient(helper_config, embeddings=False)
    service = EmbeddingService(helper_config, llm_client=client)
    assert not service.is_remote_enabled()
    assert len(await service.embed("hello")) == 300


async def test_remote_failure_falls_back(helper_config):
    client = FakeLLMClient(helper_config)
    client.embed_error = BackendError(429, "rate limited")
    service = EmbeddingService(helper_config, llm_client=client)

    assert await service.embed("hello vault") == local_embedding("hello vault")
    assert len(client.embed_calls) == 1
