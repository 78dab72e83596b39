"""Conversation threads: history, streaming state and persistence.

Each thread moves Idle → Streaming → Idle; the streaming flag is a field of
the thread and only changes through begin_streaming() / end_streaming().
Every mutation writes the full thread list to the state store.
"""

import re
import time
import uuid

from shared.errors import ThreadBusyError, ThreadNotFoundError
from shared.helper.HelperConfig import HelperConfig
from shared.models.thread import ChatMessage, ChatThread
from shared.storage.StateStore import SECTION_THREADS, StateStore

DEFAULT_NAME_PATTERN = re.compile(r"^Chat \d+$")
AUTO_NAME_MAX_CHARS = 50


def _now_ms() -> int:
    return int(time.time() * 1000)


def make_thread_name(message: str) -> str:
    """Derive a display name from a first message: at most 50 chars, '...' when cut."""
    if len(message) > AUTO_NAME_MAX_CHARS:
        return message[:AUTO_NAME_MAX_CHARS - 3] + "..."
    return message


class ThreadRegistry:
    def __init__(self, helper_config: HelperConfig, state_store: StateStore) -> None:
        self.logging = helper_config.get_logger()
        self._state_store = state_store
        self._threads: list[ChatThread] = []
        self._active_id: str | None = None

    ##########################################
    ################ LOAD ####################
    ##########################################

    async def load(self) -> ChatThread:
        """Restore threads from the state store and pick the active one.

        With no stored threads a default thread is created; otherwise the most
        recently updated thread becomes active.

        Returns:
            ChatThread: The active thread.
        """
        raw_threads = await self._state_store.get_section(SECTION_THREADS, default=[]) or []
        self._threads = []
        for raw in raw_threads:
            try:
                self._threads.append(ChatThread.model_validate(raw))
            except ValueError as exc:
                self.logging.error("Dropping unreadable stored thread: %s", exc)

        if not self._threads:
            return await self.create_thread()

        latest = max(self._threads, key=lambda t: t.updated_at)
        self._active_id = latest.id
        self.logging.info("Loaded %d chat threads, active: '%s'", len(self._threads), latest.name)
        return latest

    async def _save(self) -> None:
        await self._state_store.set_section(SECTION_THREADS, [t.model_dump() for t in self._threads])

    ##########################################
    ################ GETTER ##################
    ##########################################

    def list_threads(self) -> list[ChatThread]:
        return list(self._threads)

    def get_thread(self, thread_id: str) -> ChatThread:
        for thread in self._threads:
            if thread.id == thread_id:
                return thread
        raise ThreadNotFoundError(thread_id)

    def get_active_thread(self) -> ChatThread | None:
        if self._active_id is None:
            return None
        try:
            return self.get_thread(self._active_id)
        except ThreadNotFoundError:
            return None

    def switch_to(self, thread_id: str) -> ChatThread:
        thread = self.get_thread(thread_id)
        self._active_id = thread.id
        return thread

    def is_streaming(self, thread_id: str) -> bool:
        return self.get_thread(thread_id).is_streaming

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def create_thread(self) -> ChatThread:
        """Create a thread named "Chat <n>" and make it active."""
        now = _now_ms()
        thread = ChatThread(
            id=f"thread-{now}-{uuid.uuid4().hex[:8]}",
            name=f"Chat {len(self._threads) + 1}",
            history=[],
            created_at=now,
            updated_at=now,
        )
        self._threads.append(thread)
        self._active_id = thread.id
        await self._save()
        self.logging.debug("Created thread %s ('%s')", thread.id, thread.name)
        return thread

    async def delete_thread(self, thread_id: str) -> ChatThread | None:
        """Delete a thread. If it was active, another thread (or a new default one) becomes active.

        Returns:
            ChatThread | None: The active thread after deletion.
        """
        thread = self.get_thread(thread_id)
        self._threads = [t for t in self._threads if t.id != thread.id]

        if self._active_id == thread.id:
            if self._threads:
                self._active_id = self._threads[0].id
            else:
                # create_thread() saves the list itself
                return await self.create_thread()

        await self._save()
        return self.get_active_thread()

    async def rename_thread(self, thread_id: str, new_name: str) -> ChatThread:
        thread = self.get_thread(thread_id)
        thread.name = new_name
        thread.updated_at = _now_ms()
        await self._save()
        return thread

    async def clear_thread(self, thread_id: str) -> ChatThread:
        thread = self.get_thread(thread_id)
        thread.history = []
        thread.updated_at = _now_ms()
        await self._save()
        return thread

    ##########################################
    ############### STREAMING ################
    ##########################################

    def begin_streaming(self, thread_id: str) -> ChatThread:
        """Mark a thread as streaming.

        Raises:
            ThreadNotFoundError: If the thread does not exist.
            ThreadBusyError: If the thread is already streaming.
        """
        thread = self.get_thread(thread_id)
        if thread.is_streaming:
            raise ThreadBusyError(thread_id)
        thread.is_streaming = True
        return thread

    def end_streaming(self, thread_id: str) -> None:
        try:
            self.get_thread(thread_id).is_streaming = False
        except ThreadNotFoundError:
            # deleted while streaming
            pass

    ##########################################
    ################ HISTORY #################
    ##########################################

    async def apply_auto_name(self, thread_id: str, message: str) -> bool:
        """Name a thread after its first user message.

        Applies only while the history is empty and the name still has the
        default "Chat <n>" form, so it happens at most once per thread.

        Returns:
            bool: True if the thread was renamed.
        """
        thread = self.get_thread(thread_id)
        if thread.history or not DEFAULT_NAME_PATTERN.match(thread.name):
            return False
        thread.name = make_thread_name(message)
        await self._save()
        return True

    async def append_exchange(self, thread_id: str, user_text: str, assistant_text: str) -> ChatThread:
        """Append one user and one assistant message, in that order."""
        thread = self.get_thread(thread_id)
        thread.history.append(ChatMessage(role="user", content=user_text))
        thread.history.append(ChatMessage(role="assistant", content=assistant_text))
        thread.updated_at = _now_ms()
        await self._save()
        return thread

    def export_markdown(self, thread_id: str) -> str:
        """Render a thread as markdown, one block per message."""
        thread = self.get_thread(thread_id)
        content = f"# {thread.name}\n\n"
        for msg in thread.history:
            speaker = "You" if msg.role == "user" else "Assistant"
            content += f"**{speaker}:** {msg.content}\n\n---\n\n"
        return content
