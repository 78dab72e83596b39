from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOpenai(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.openai.com/v1", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def supports_embeddings(self) -> bool:
        return True

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "OpenAI"

    def _get_default_chat_model(self) -> str:
        return "gpt-3.5-turbo"

    def _get_default_embed_model(self) -> str:
        return "text-embedding-3-small"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.openai.com/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def get_endpoint_embedding(self) -> str:
        return "/embeddings"

    def _get_endpoint_chat(self) -> str:
        return "/chat/completions"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the OpenAI embedding request body.

        Each input is cut to LLM_EMBED_MAX_CHARS characters.

        Returns:
            dict: {"model": "...", "input": [...]}
        """
        max_chars = int(self.embed_model_max_chars)
        return {"model": self.embed_model, "input": [text[:max_chars] for text in texts]}

    def get_chat_payload(self, messages: list[dict], system_prompt: str | None = None, max_tokens: int | None = None, stream: bool = False) -> dict:
        """Build the OpenAI chat request body.

        The system prompt travels as the first message.

        Returns:
            dict: {"model": "...", "messages": [...], "max_tokens": ..., "temperature": ..., "stream": ...}
        """
        request_messages: list[dict] = []
        if system_prompt:
            request_messages.append({"role": "system", "content": system_prompt})
        request_messages.extend({"role": m["role"], "content": m["content"]} for m in messages)

        payload = {
            "model": self.get_chat_model(),
            "messages": request_messages,
            "max_tokens": int(max_tokens or self.max_tokens),
            "temperature": self.temperature,
        }
        if stream:
            payload["stream"] = True
        return payload

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from an OpenAI /embeddings response.

        Response: {"data": [{"embedding": [...], "index": 0}, ...]}, sorted by index here.

        Raises:
            ValueError: If the response does not contain valid embeddings.
        """
        data = response_data.get("data")
        if not data or not data[0].get("embedding"):
            raise ValueError(
                "OpenAI response does not contain valid embeddings. "
                "Response keys: %s" % list(response_data.keys())
            )
        return [item["embedding"] for item in sorted(data, key=lambda item: item.get("index", 0))]

    def extract_chat_response(self, response_data: dict) -> str:
        choices = response_data.get("choices") or []
        content = (choices[0].get("message") or {}).get("content") if choices else None
        if content is None:
            raise ValueError(
                "OpenAI chat response does not contain a valid message. "
                "Response keys: %s" % list(response_data.keys())
            )
        return content

    def extract_stream_delta(self, payload: dict) -> str | None:
        # Format A: incremental text at choices[0].delta.content
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        delta = choices[0].get("delta")
        if not isinstance(delta, dict):
            return None
        content = delta.get("content")
        return content if isinstance(content, str) else None

    def is_stream_end(self, data: str) -> bool:
        return data.strip() == "[DONE]"
