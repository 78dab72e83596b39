from pydantic import BaseModel

from shared.models.document import SearchHit
from shared.models.index import IndexJob
from shared.models.thread import ChatMessage


class SearchResponse(BaseModel):
    query: str
    results: list[SearchHit]
    total: int


class IndexStatusResponse(BaseModel):
    running: bool
    job: IndexJob | None = None
    document_count: int
    embedding_strategy: str


class ThreadSummary(BaseModel):
    id: str
    name: str
    message_count: int
    created_at: int
    updated_at: int
    is_streaming: bool
    active: bool


class ThreadDetail(ThreadSummary):
    history: list[ChatMessage]
