from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig

MAX_SUMMARY_INPUT_CHARS = 100000
SUMMARY_MAX_TOKENS = 600
FALLBACK_SUMMARY_CHARS = 500


class SummaryService:
    """Summarises documents with the completion backend, falling back to truncation."""

    def __init__(self, helper_config: HelperConfig, llm_client: LLMClientInterface | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client

    async def summarize(self, content: str) -> str:
        """Summarise a document in 500 words or less.

        Args:
            content (str): The full document text.

        Returns:
            str: The backend's summary, or the first 500 characters followed
                by "..." if the backend is unavailable or fails.
        """
        truncated_content = (
            content[:MAX_SUMMARY_INPUT_CHARS] + "..."
            if len(content) > MAX_SUMMARY_INPUT_CHARS
            else content
        )
        fallback = truncated_content[:FALLBACK_SUMMARY_CHARS] + "..."

        if self._llm_client is None or not self._llm_client.has_api_key():
            return fallback

        prompt = f"Please summarize the following document in 500 words or less:\n\n{truncated_content}"
        try:
            return await self._llm_client.do_chat(
                [{"role": "user", "content": prompt}],
                max_tokens=SUMMARY_MAX_TOKENS,
            )
        except Exception as exc:
            self.logging.warning("Summarization failed, using truncated content instead: %s", exc)
            return fallback
