"""Pydantic models describing an indexing run."""

from pydantic import BaseModel


class IndexJob(BaseModel):
    """Transient state of a running indexing job. Never persisted.

    Attributes:
        total:      Number of candidates left after filtering.
        completed:  Items finished so far (indexed + unchanged + skipped).
        cancelled:  Set by a cancel request, honoured at the next batch boundary.
    """

    total: int = 0
    completed: int = 0
    cancelled: bool = False


class IndexResult(BaseModel):
    total: int = 0
    indexed: int = 0
    unchanged: int = 0
    skipped: int = 0
    cancelled: bool = False
