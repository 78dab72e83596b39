"""
Shared pytest fixtures for the vault ask bridge tests.

Provides an isolated environment, an in-memory document source and fake
completion clients so no test touches the network or the real vault.
"""

import json
import logging
import os

import httpx
import pytest

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.source.SourceInterface import SourceInterface
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.models.document import Candidate
from shared.storage.StateStore import StateStore

ENV_PREFIXES = ("LLM_", "INDEX_", "SOURCE_", "STATE_", "APP_")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Remove app settings inherited from the shell and point ROOT_DIR at a temp dir."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    return monkeypatch


@pytest.fixture
def logger():
    return ColorLogger(logging.getLogger("vault_ask.tests"))


@pytest.fixture
def helper_config(logger):
    return HelperConfig(logger=logger)


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / "data" / "state.json")


@pytest.fixture
def state_store(helper_config, state_path):
    return StateStore(helper_config=helper_config, path=state_path)


class MemorySource(SourceInterface):
    """Document source backed by a dict of path -> content."""

    def __init__(self, helper_config: HelperConfig, files: dict[str, str] | None = None):
        super().__init__(helper_config=helper_config)
        self.files = dict(files or {})
        self.read_calls: list[str] = []
        self.fail_paths: set[str] = set()

    def _get_engine_name(self) -> str:
        return "Memory"

    async def list_candidates(self) -> list[Candidate]:
        return [Candidate(path=path, extension=os.path.splitext(path)[1].lstrip(".")) for path in self.files]

    async def read(self, path: str) -> str:
        self.read_calls.append(path)
        if path in self.fail_paths:
            raise OSError(f"cannot read {path}")
        return self.files[path]


@pytest.fixture
def memory_source(helper_config):
    return MemorySource(helper_config)


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks, to exercise split lines."""

    def __init__(self, chunks: list[bytes]):
        self._chunks = chunks

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk


def sse_body(payloads: list, end_marker: str | None = None) -> bytes:
    """Render payloads as newline-delimited ``data:`` lines."""
    lines = [f"data: {json.dumps(p) if not isinstance(p, str) else p}" for p in payloads]
    if end_marker is not None:
        lines.append(f"data: {end_marker}")
    return ("\n".join(lines) + "\n").encode("utf-8")


class FakeLLMClient(LLMClientInterface):
    """Completion client that answers from canned data instead of HTTP."""

    def __init__(self, helper_config: HelperConfig, api_key: str = "test-key", embeddings: bool = True):
        super().__init__(helper_config=helper_config)
        self._api_key = api_key
        self._embeddings = embeddings
        self.chat_reply = "summary"
        self.stream_fragments: list[str] = ["Hello", " world"]
        self.stream_error: Exception | None = None
        self.embed_error: Exception | None = None
        self.embed_vector: list[float] | None = None
        self.chat_calls: list[dict] = []
        self.stream_calls: list[dict] = []
        self.embed_calls: list[list[str]] = []

    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def supports_embeddings(self) -> bool:
        return self._embeddings

    def _get_engine_name(self) -> str:
        return "Fake"

    def _get_default_chat_model(self) -> str:
        return "fake-chat"

    def _get_default_embed_model(self) -> str:
        return "fake-embed"

    def _get_required_config(self) -> list:
        return []

    def _get_auth_header(self) -> dict:
        return {}

    def _get_base_url(self) -> str:
        return "http://fake.invalid"

    def _get_endpoint_healthcheck(self) -> str:
        return "/health"

    def _get_endpoint_chat(self) -> str:
        return "/chat"

    def get_chat_payload(self, messages, system_prompt=None, max_tokens=None, stream=False) -> dict:
        return {"messages": messages, "system": system_prompt, "max_tokens": max_tokens, "stream": stream}

    def extract_chat_response(self, response_data: dict) -> str:
        return response_data["text"]

    def extract_stream_delta(self, payload: dict) -> str | None:
        return payload.get("text")

    async def do_embed(self, texts):
        texts = [texts] if isinstance(texts, str) else texts
        self.embed_calls.append(texts)
        if self.embed_error is not None:
            raise self.embed_error
        return [list(self.embed_vector or [1.0, 0.0, 0.0]) for _ in texts]

    async def do_chat(self, messages, system_prompt=None, max_tokens=None) -> str:
        self._require_api_key()
        self.chat_calls.append({"messages": messages, "system_prompt": system_prompt, "max_tokens": max_tokens})
        return self.chat_reply

    async def do_chat_stream(self, messages, system_prompt=None, max_tokens=None):
        self._require_api_key()
        self.stream_calls.append({"messages": messages, "system_prompt": system_prompt})
        for fragment in self.stream_fragments:
            yield fragment
        if self.stream_error is not None:
            raise self.stream_error


@pytest.fixture
def fake_llm(helper_config):
    return FakeLLMClient(helper_config)
