from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.errors import ConfigurationError
from shared.helper.HelperConfig import HelperConfig

DEFAULT_ENGINE = "openai"

# alternative spellings accepted in LLM_ENGINE
ENGINE_ALIASES = {
    "anthropic": "claude",
    "open_ai": "openai",
}


class LLMClientManager:
    """Resolves LLM_ENGINE to a completion client.

    Engine "<name>" is served by shared.clients.llm.<name>.LLMClient<Name>, so a
    new backend is added by dropping a module into that package.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.engine = self._resolve_engine()
        self.client = self._load_client(self.engine)

    def _resolve_engine(self) -> str:
        engine = self.helper_config.get_string_val("LLM_ENGINE", default=DEFAULT_ENGINE).strip().lower()
        return ENGINE_ALIASES.get(engine, engine)

    def _load_client(self, engine: str) -> LLMClientInterface:
        """Import and instantiate the client class for an engine.

        Raises:
            ConfigurationError: If no client module exists for the engine.
        """
        class_name = f"LLMClient{engine.capitalize()}"
        module_path = f"shared.clients.llm.{engine}.{class_name}"
        try:
            client_class = getattr(__import__(module_path, fromlist=[class_name]), class_name)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Unsupported LLM engine '{engine}' ({module_path}): {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.info("Using LLM engine '%s' (chat model: %s)", engine, client.chat_model)
        return client

    def get_client(self) -> LLMClientInterface:
        return self.client
