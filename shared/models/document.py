"""Pydantic models for documents and the vector index.

Hierarchy:
  Candidate            : a document as listed by the document source.
  VectorDocument       : an indexed document, owned by the VectorStore.
  SearchHit            : one ranked result of a similarity search.
  VectorIndexSnapshot  : the persisted form of the whole index.
"""

from pydantic import BaseModel


class Candidate(BaseModel):
    """A document the source offers for indexing.

    Attributes:
        path:       Vault-relative path, unique key of the document.
        extension:  File extension without leading dot (e.g. "md").
    """

    path: str
    extension: str = ""


class VectorDocument(BaseModel):
    """An indexed document.

    Replaced wholesale whenever its content hash changes; never partially
    mutated.
    """

    path: str
    content: str
    summary: str
    embedding: list[float]
    hash: str


class SearchHit(BaseModel):
    path: str
    content: str
    score: float


class VectorIndexSnapshot(BaseModel):
    documents: list[VectorDocument] = []
    version: str = "1.0"
    timestamp: int = 0
