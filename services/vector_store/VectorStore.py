"""In-memory vector index keyed by document path.

Search is a linear cosine-similarity scan, O(n·d). That is fine for a
personal vault of a few thousand documents; there is no sub-linear index.

Concurrency: snapshot-on-read. Writers compute embeddings without holding
the lock and only swap the finished record in under it; readers copy the
record list under the lock and score the copy, so a search running during an
indexing job sees each document either in its old or its new version.
"""

import threading
import time

from services.embedding.EmbeddingService import EmbeddingService
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperVector import cosine_similarity
from shared.models.document import SearchHit, VectorDocument, VectorIndexSnapshot

INDEX_VERSION = "1.0"


class VectorStore:
    def __init__(self, helper_config: HelperConfig, embedding_service: EmbeddingService) -> None:
        self.logging = helper_config.get_logger()
        self._embedding = embedding_service
        self._documents: dict[str, VectorDocument] = {}
        self._lock = threading.Lock()

    ##########################################
    ################ WRITE ###################
    ##########################################

    async def do_upsert(self, path: str, content: str, summary: str, content_hash: str) -> VectorDocument:
        """Embed a document's summary and store it, replacing any record for the same path.

        Args:
            path (str): Unique document path.
            content (str): Full document text.
            summary (str): Generated summary; this is what gets embedded.
            content_hash (str): Change-detection hash of `content`.

        Returns:
            VectorDocument: The stored record.
        """
        embedding = await self._embedding.embed(summary)
        document = VectorDocument(path=path, content=content, summary=summary, embedding=embedding, hash=content_hash)
        with self._lock:
            self._documents[path] = document
        return document

    def remove(self, path: str) -> bool:
        with self._lock:
            return self._documents.pop(path, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._documents = {}

    ##########################################
    ################ READ ####################
    ##########################################

    def has_unchanged(self, path: str, content_hash: str) -> bool:
        """True iff a record exists for `path` with exactly this hash."""
        with self._lock:
            document = self._documents.get(path)
        return document is not None and document.hash == content_hash

    def get_document_count(self) -> int:
        with self._lock:
            return len(self._documents)

    def list_paths(self) -> list[str]:
        with self._lock:
            return list(self._documents.keys())

    async def search(self, query: str, k: int = 3) -> list[SearchHit]:
        """Return the `k` documents most similar to the query, best first.

        Args:
            query (str): Free-text query.
            k (int): Maximum number of hits.

        Returns:
            list[SearchHit]: At most `k` hits sorted by descending score; empty for an empty store.
        """
        with self._lock:
            documents = list(self._documents.values())
        if not documents or k <= 0:
            return []

        query_embedding = await self._embedding.embed(query)

        hits: list[SearchHit] = []
        mismatched = 0
        for document in documents:
            if len(document.embedding) != len(query_embedding):
                mismatched += 1
                continue
            hits.append(
                SearchHit(
                    path=document.path,
                    content=document.content,
                    score=cosine_similarity(query_embedding, document.embedding),
                )
            )
        if mismatched:
            self.logging.warning(
                "Skipped %d of %d documents embedded with a different strategy than the query (dimension %d). Re-index to fix.",
                mismatched,
                len(documents),
                len(query_embedding),
            )

        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:k]

    ##########################################
    ############# PERSISTENCE ################
    ##########################################

    def snapshot(self) -> dict:
        """Serialise every document into the persisted index format."""
        with self._lock:
            documents = list(self._documents.values())
        return VectorIndexSnapshot(
            documents=documents,
            version=INDEX_VERSION,
            timestamp=int(time.time() * 1000),
        ).model_dump()

    def restore(self, data: dict | None) -> int:
        """Replace the store content with a snapshot.

        Args:
            data (dict | None): A snapshot as produced by snapshot(). None or a
                payload without a document list leaves the store untouched.

        Returns:
            int: Number of documents loaded.
        """
        if not data or not isinstance(data.get("documents"), list):
            return 0
        snapshot = VectorIndexSnapshot.model_validate(data)
        with self._lock:
            self._documents = {document.path: document for document in snapshot.documents}
            count = len(self._documents)
        self.logging.info("Loaded %d indexed documents from storage", count)
        return count
