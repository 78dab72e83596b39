"""Retrieval-augmented, streamed answers per conversation thread.

Flow per message: mark thread busy, name the thread on its first message,
retrieve the top-k documents, build the system prompt from their content,
stream the completion, append the sources section, update the history and
release the thread.
"""

import re
from contextlib import aclosing
from typing import AsyncIterator, Callable

from services.vault_chat.ThreadRegistry import ThreadRegistry
from services.vector_store.VectorStore import VectorStore
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import SearchHit

TOP_K = 3

NO_CONTEXT_ANSWER = "I couldn't find any relevant information in your vault. Try indexing your files first."

SYSTEM_PROMPT_TEMPLATE = (
    "You are a helpful assistant answering questions about the user's document vault.\n\n"
    "Context from relevant documents:\n{context}\n\n"
    "Please provide helpful and accurate answers based on the context and conversation history. "
    "If the context doesn't contain enough information to answer the question, please say so."
)

ChunkSink = Callable[[str], None]


def build_context(hits: list[SearchHit]) -> str:
    context = "Relevant documents:\n\n"
    for hit in hits:
        context += f"File: {hit.path}\n{hit.content}\n\n---\n\n"
    return context


def build_sources_section(hits: list[SearchHit]) -> str:
    """Markdown list of wiki links to the retrieved documents, in ranking order."""
    sources = "\n\n---\n\n**Sources:**\n\n"
    for hit in hits:
        link = re.sub(r"\.md$", "", hit.path)
        sources += f"- [[{link}]]\n"
    return sources


class ChatService:
    def __init__(
        self,
        helper_config: HelperConfig,
        llm_client: LLMClientInterface,
        vector_store: VectorStore,
        thread_registry: ThreadRegistry,
        top_k: int = TOP_K,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client
        self._vector_store = vector_store
        self._threads = thread_registry
        self._top_k = top_k

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_stream_message(self, thread_id: str, question: str, claimed: bool = False) -> AsyncIterator[str]:
        """Answer a question in a thread as a stream of text fragments.

        The fragments concatenate to the answer followed by the sources
        section, which is always the last fragment. The stream cannot be
        restarted; errors end it by raising. The thread's streaming flag is
        released when the stream ends, however it ends.

        Args:
            thread_id (str): The conversation to answer in.
            question (str): The user's question.
            claimed (bool): The caller already holds the streaming flag
                (ThreadRegistry.begin_streaming()) and hands it over.

        Yields:
            str: Text fragments in arrival order.

        Raises:
            ThreadNotFoundError: If the thread does not exist.
            ThreadBusyError: If the thread is already streaming.
            ConfigurationError: If the backend is missing an API key or model.
            BackendError: If the backend rejects the request.
        """
        if claimed:
            thread = self._threads.get_thread(thread_id)
        else:
            thread = self._threads.begin_streaming(thread_id)
        try:
            await self._threads.apply_auto_name(thread_id, question)
            # history before this exchange
            history = [{"role": m.role, "content": m.content} for m in thread.history]

            hits = await self._vector_store.search(question, k=self._top_k)
            self.logging.info(
                "Answering in thread '%s' with %d context documents: %r",
                thread.name, len(hits), question[:80],
            )

            if not hits:
                answer = NO_CONTEXT_ANSWER
                yield answer
            else:
                system_prompt = SYSTEM_PROMPT_TEMPLATE.format(context=build_context(hits))
                messages = history + [{"role": "user", "content": question}]

                parts: list[str] = []
                async with aclosing(self._llm_client.do_chat_stream(messages, system_prompt=system_prompt)) as fragments:
                    async for fragment in fragments:
                        parts.append(fragment)
                        yield fragment

                sources = build_sources_section(hits)
                yield sources
                answer = "".join(parts) + sources

            await self._threads.append_exchange(thread_id, question, answer)
        finally:
            self._threads.end_streaming(thread_id)

    async def do_send_message(self, thread_id: str, question: str, chunk_sink: ChunkSink | None = None) -> str:
        """Answer a question, handing every fragment to `chunk_sink` as it arrives.

        Returns:
            str: The full answer including the sources section, as stored in history.
        """
        parts: list[str] = []
        async with aclosing(self.do_stream_message(thread_id, question)) as fragments:
            async for fragment in fragments:
                parts.append(fragment)
                if chunk_sink is not None:
                    chunk_sink(fragment)
        return "".join(parts)
