"""Pydantic models for conversation threads."""

from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatThread(BaseModel):
    """A persisted conversation.

    Attributes:
        id:            Unique thread id.
        name:          Display name; "Chat <n>" until auto-named or renamed.
        history:       Ordered messages, append-only except for clear.
        created_at:    Creation time in epoch milliseconds.
        updated_at:    Last modification time in epoch milliseconds.
        is_streaming:  Runtime-only busy flag, changed through ThreadRegistry only.
    """

    id: str
    name: str
    history: list[ChatMessage] = []
    created_at: int
    updated_at: int
    is_streaming: bool = Field(default=False, exclude=True)
