"""Embedding provider with a transparent local fallback.

The remote strategy asks the completion backend for an embedding when the
backend offers one and has credentials. Any failure there is logged and
answered by the local hashing embedding, so indexing and retrieval keep
working, with degraded quality, without network or API key.
"""

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperVector import local_embedding


class EmbeddingService:
    def __init__(self, helper_config: HelperConfig, llm_client: LLMClientInterface | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client

    def is_remote_enabled(self) -> bool:
        """Returns True if embeddings are requested from the completion backend."""
        client = self._llm_client
        return client is not None and client.supports_embeddings() and client.has_api_key()

    def get_strategy_name(self) -> str:
        """Returns "remote:<model>" or "local"."""
        if self.is_remote_enabled():
            return f"remote:{self._llm_client.embed_model}"
        return "local"

    async def embed(self, text: str) -> list[float]:
        """Convert a text into a vector. Never raises.

        Args:
            text (str): The text to embed.

        Returns:
            list[float]: The remote model's vector, or the 300-dimensional local vector.
        """
        if self.is_remote_enabled():
            try:
                vectors = await self._llm_client.do_embed(text)
                return vectors[0]
            except Exception as exc:
                self.logging.warning(
                    "Remote embedding via '%s' failed, falling back to local embedding: %s",
                    self._llm_client.get_engine_name(),
                    exc,
                )
        return local_embedding(text)
