from abc import abstractmethod
from contextlib import aclosing
from typing import AsyncIterator

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ConfigurationError, ParseError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperStream import extract_sse_data, parse_stream_payload


class LLMClientInterface(ClientInterface):
    """Completion backend strategy.

    Every engine exposes the same capability set: do_embed(), do_chat() and
    do_chat_stream(). Subclasses supply endpoints, auth, payload builders and
    response extractors; the request flow lives here.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # embedding config
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_EMBED_MODEL", default=self._get_default_embed_model())
        self.embed_model_max_chars = helper_config.get_number_val(f"{self.get_client_type().upper()}_EMBED_MAX_CHARS", default=8000)

        # chat / completion config
        self.chat_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_CHAT_MODEL", default=self._get_default_chat_model())
        self.custom_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_CUSTOM_MODEL", default="")
        self.max_tokens = helper_config.get_number_val(f"{self.get_client_type().upper()}_MAX_TOKENS", default=1000)
        self.temperature = helper_config.get_number_val(f"{self.get_client_type().upper()}_TEMPERATURE", default=0.7)

    ##########################################
    ############### CHECKER ##################
    ##########################################

    @abstractmethod
    def has_api_key(self) -> bool:
        """Returns True if an API key is configured for the backend."""
        pass

    def supports_embeddings(self) -> bool:
        """Returns True if the backend offers an embedding endpoint."""
        return False

    def _require_api_key(self) -> None:
        if not self.has_api_key():
            raise ConfigurationError(
                f"API key not configured for LLM engine '{self.get_engine_name()}'. "
                f"Set {self._get_config_key_name('API_KEY')}."
            )

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    def get_chat_model(self) -> str:
        """Resolve the chat model name, following "custom" to LLM_CUSTOM_MODEL.

        Raises:
            ConfigurationError: If no model name is configured.
        """
        model = self.custom_model if self.chat_model == "custom" else self.chat_model
        if not model:
            raise ConfigurationError("Model name is required. Configure LLM_CHAT_MODEL or LLM_CUSTOM_MODEL.")
        return model

    def get_provider_config(self) -> dict:
        """Non-secret provider settings, as persisted alongside the index."""
        return {
            "engine": self.get_engine_name(),
            "base_url": self._get_base_url(),
            "chat_model": self.chat_model,
            "custom_model": self.custom_model,
            "embed_model": self.embed_model if self.supports_embeddings() else None,
        }

    @abstractmethod
    def _get_default_chat_model(self) -> str:
        pass

    def _get_default_embed_model(self) -> str:
        return ""

    ################ ENDPOINTS ##################
    def get_endpoint_embedding(self) -> str:
        """Returns the endpoint path for embedding requests (e.g. "/embeddings")."""
        raise NotImplementedError(f"LLM engine '{self.get_engine_name()}' does not support embeddings.")

    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/chat/completions")."""
        pass

    def _get_chat_headers(self) -> dict:
        """Extra headers sent with chat requests (e.g. an API version header)."""
        return {}

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request."""
        raise NotImplementedError(f"LLM engine '{self.get_engine_name()}' does not support embeddings.")

    @abstractmethod
    def get_chat_payload(self, messages: list[dict], system_prompt: str | None = None, max_tokens: int | None = None, stream: bool = False) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            messages (list[dict]): Conversation turns
                (e.g. [{"role": "user", "content": "..."}]).
            system_prompt (str | None): Instruction turn, placed where the backend expects it.
            max_tokens (int | None): Completion length limit, defaults to LLM_MAX_TOKENS.
            stream (bool): Request a streamed response.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response, in input order."""
        raise NotImplementedError(f"LLM engine '{self.get_engine_name()}' does not support embeddings.")

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from a raw (non-streamed) chat API response.

        Raises:
            ValueError: If the response does not contain a reply.
        """
        pass

    @abstractmethod
    def extract_stream_delta(self, payload: dict) -> str | None:
        """Extract the incremental text carried by one decoded stream payload.

        Returns:
            str | None: The text fragment, or None if the payload carries no text.
        """
        pass

    def is_stream_end(self, data: str) -> bool:
        """Returns True if a ``data:`` payload marks the end of the stream."""
        return False

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send an embedding request and return the extracted vectors.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the inputs.

        Raises:
            ConfigurationError: If no API key is configured.
            BackendError: If the HTTP request fails.
            ValueError: If the response does not contain valid embeddings.
        """
        self._require_api_key()
        texts = [texts] if isinstance(texts, str) else texts
        body = self.get_embed_payload(texts)
        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_embedding(),
            json=body,
            raise_on_error=True,
        )
        return self.extract_embeddings_from_response(response.json())

    async def do_chat(self, messages: list[dict], system_prompt: str | None = None, max_tokens: int | None = None) -> str:
        """Send a chat/completion request and return the assistant reply text.

        Raises:
            ConfigurationError: If the API key or model name is missing.
            BackendError: If the HTTP request fails.
            ValueError: If the response does not contain a valid reply.
        """
        self._require_api_key()
        body = self.get_chat_payload(messages, system_prompt=system_prompt, max_tokens=max_tokens, stream=False)
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=body,
            additional_headers=self._get_chat_headers(),
            raise_on_error=True,
        )
        return self.extract_chat_response(response.json())

    async def do_chat_stream(self, messages: list[dict], system_prompt: str | None = None, max_tokens: int | None = None) -> AsyncIterator[str]:
        """Send a streamed chat/completion request and yield text fragments as they arrive.

        Lines that are not ``data:`` lines are ignored, malformed payloads are
        skipped. The stream ends at the backend's end marker or when the
        connection closes.

        Yields:
            str: Non-empty incremental text fragments.

        Raises:
            ConfigurationError: If the API key or model name is missing.
            BackendError: If the backend answers with a non-2xx status.
        """
        self._require_api_key()
        body = self.get_chat_payload(messages, system_prompt=system_prompt, max_tokens=max_tokens, stream=True)
        async with aclosing(
            self.do_stream_lines(
                method="POST",
                endpoint=self._get_endpoint_chat(),
                json=body,
                additional_headers=self._get_chat_headers(),
            )
        ) as lines:
            async for line in lines:
                data = extract_sse_data(line)
                if data is None:
                    continue
                if self.is_stream_end(data):
                    break
                try:
                    payload = parse_stream_payload(data)
                except ParseError as exc:
                    self.logging.debug("Skipping malformed stream payload from %s: %s", self.get_engine_name(), exc)
                    continue
                fragment = self.extract_stream_delta(payload)
                if fragment:
                    yield fragment
