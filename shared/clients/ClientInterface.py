from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

import httpx

from shared.errors import BackendError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

DEFAULT_TIMEOUT_SECONDS = 120.0
ERROR_BODY_LOG_CHARS = 500


class ClientInterface(ABC):
    """HTTP backend client configured from ``<TYPE>_<ENGINE>_<KEY>`` environment variables.

    Lifecycle: construct (validates configuration), boot() to open the
    connection pool, close() when done. Requests before boot() fail.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=DEFAULT_TIMEOUT_SECONDS)
        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Read every required key once so a bad setting fails at construction time.

        Raises:
            ConfigurationError: If a required key is missing or malformed.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """Lower-case client family, e.g. "llm"."""
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    def get_engine_name(self) -> str:
        """Lower-case engine name, e.g. "openai"."""
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """Display name of the engine, e.g. "OpenAI"."""
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Keys checked by validate_full_configuration(), without the type/engine prefix."""
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """Full environment key, e.g. "API_KEY" -> "LLM_OPENAI_API_KEY"."""
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read an engine-scoped setting.

        Args:
            raw_key (str): Key without prefix, e.g. "BASE_URL".
            default (Any): Value used when the variable is unset; None makes it required.
            val_type (str): "string", "number", "bool" or "list".
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(f"Unsupported config value type '{val_type}' for '{raw_key}' of {self.get_engine_name()} client.")
        return readers[val_type](self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Authentication headers for every request; empty when no credential is configured."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """Backend root, e.g. "https://api.openai.com/v1"."""
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        pass

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.strip()
        path = "/" + endpoint.lstrip("/") if endpoint else ""
        return self._get_base_url().rstrip("/") + path

    def _build_headers(self, additional_headers: dict | None) -> dict:
        # no Content-Type here: httpx derives it from the json body
        return {**self._get_auth_header(), **(additional_headers or {})}

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the connection pool.

        Args:
            transport (httpx.AsyncBaseTransport | None): Replacement transport, e.g. httpx.MockTransport in tests.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_booted(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(f"{self._get_engine_name()} client is not booted. Call boot() first.")
        return self._client

    def _raise_backend_error(self, url: str, status_code: int, body: str) -> None:
        self.logging.error("%s request to %s failed with HTTP %d: %s", self._get_engine_name(), url, status_code, body[:ERROR_BODY_LOG_CHARS])
        raise BackendError(status_code, body, url=url)

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        """Check that the backend is reachable and accepts the configured credentials.

        Raises:
            BackendError: On a non-2xx answer.
        """
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)

    async def do_request(
        self,
        method: str = "GET",
        json: dict | None = None,
        params: dict | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request and return the complete response.

        Args:
            method: HTTP method.
            json: Request body, sent as JSON.
            params: URL query parameters.
            endpoint: Path below the base URL.
            additional_headers: Headers merged over the auth headers.
            raise_on_error: Raise BackendError instead of returning a non-2xx response.

        Raises:
            RuntimeError: If the client is not booted.
            BackendError: On a non-2xx status when raise_on_error is set.
        """
        client = self._require_booted()
        url = self._build_url(endpoint)
        kwargs: dict = {"headers": self._build_headers(additional_headers), "params": params, "timeout": self.timeout}
        if json is not None:
            kwargs["json"] = json

        response = await client.request(method, url, **kwargs)
        if raise_on_error and response.status_code >= 300:
            self._raise_backend_error(url, response.status_code, response.text)
        return response

    async def do_stream_lines(
        self,
        method: str = "POST",
        json: dict | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
    ) -> AsyncIterator[str]:
        """Send one request and yield the response body line by line as it arrives.

        httpx reassembles lines split across network reads (including split
        multi-byte characters) and strips the terminators. The connection
        stays open until the body is exhausted or the iterator is closed, so
        callers should wrap it in contextlib.aclosing().

        Raises:
            RuntimeError: If the client is not booted.
            BackendError: On a non-2xx status, carrying the backend's error body.
        """
        client = self._require_booted()
        url = self._build_url(endpoint)
        async with client.stream(
            method,
            url,
            headers=self._build_headers(additional_headers),
            json=json,
            timeout=self.timeout,
        ) as response:
            if response.status_code >= 300:
                body = (await response.aread()).decode("utf-8", errors="replace")
                self._raise_backend_error(url, response.status_code, body)

            async for line in response.aiter_lines():
                yield line
