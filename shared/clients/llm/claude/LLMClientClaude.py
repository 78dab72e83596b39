from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

ANTHROPIC_VERSION = "2023-06-01"


class LLMClientClaude(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.anthropic.com/v1", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def has_api_key(self) -> bool:
        return bool(self._api_key)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Claude"

    def _get_default_chat_model(self) -> str:
        return "claude-3-sonnet-20240229"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.anthropic.com/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"x-api-key": self._api_key}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def _get_endpoint_chat(self) -> str:
        return "/messages"

    def _get_chat_headers(self) -> dict:
        return {"anthropic-version": ANTHROPIC_VERSION}

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict], system_prompt: str | None = None, max_tokens: int | None = None, stream: bool = False) -> dict:
        """Build the Messages API request body.

        The system prompt is a top-level field, not a message.

        Returns:
            dict: {"model": "...", "max_tokens": ..., "system": "...", "messages": [...], "stream": ...}
        """
        payload = {
            "model": self.get_chat_model(),
            "max_tokens": int(max_tokens or self.max_tokens),
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
        }
        if system_prompt:
            payload["system"] = system_prompt
        if stream:
            payload["stream"] = True
        return payload

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        blocks = response_data.get("content") or []
        text = blocks[0].get("text") if blocks and isinstance(blocks[0], dict) else None
        if text is None:
            raise ValueError(
                "Claude response does not contain a text block. "
                "Response keys: %s" % list(response_data.keys())
            )
        return text

    def extract_stream_delta(self, payload: dict) -> str | None:
        # Format B: only content_block_delta events carry text, at delta.text
        if payload.get("type") != "content_block_delta":
            return None
        delta = payload.get("delta")
        if not isinstance(delta, dict):
            return None
        text = delta.get("text")
        return text if isinstance(text, str) else None
