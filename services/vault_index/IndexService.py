"""Batch indexing pipeline.

Lists the candidate documents of a source, filters them, and drives change
detection, summarisation and embedding over fixed-size concurrent batches.
Unchanged documents (same path, same content hash) are never re-embedded.
"""

import asyncio
import posixpath
from typing import Callable

from services.vault_index.SummaryService import SummaryService
from services.vector_store.VectorStore import VectorStore
from shared.clients.source.SourceInterface import SourceInterface
from shared.errors import IndexingInProgressError, ItemError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperFilter import should_index_file
from shared.helper.HelperHash import content_hash
from shared.models.config import FilterConfig
from shared.models.document import Candidate
from shared.models.index import IndexJob, IndexResult
from shared.storage.StateStore import SECTION_VECTOR_INDEX, StateStore

BATCH_SIZE = 20  # documents processed concurrently between cancellation checks

OUTCOME_INDEXED = "indexed"
OUTCOME_UNCHANGED = "unchanged"
OUTCOME_SKIPPED = "skipped"

ProgressCallback = Callable[[int, int, str], None]


class IndexService:
    """Orchestrates one indexing run from a document source into the vector store."""

    def __init__(
        self,
        helper_config: HelperConfig,
        source: SourceInterface,
        vector_store: VectorStore,
        summary_service: SummaryService,
        state_store: StateStore | None = None,
        filter_config: FilterConfig | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._source = source
        self._vector_store = vector_store
        self._summary_service = summary_service
        self._state_store = state_store
        self._filter_config = filter_config or FilterConfig.from_helper_config(helper_config)
        self._job: IndexJob | None = None

    ##########################################
    ################ STATE ###################
    ##########################################

    def is_indexing(self) -> bool:
        return self._job is not None

    def get_job(self) -> IndexJob | None:
        """Returns a copy of the running job's progress, or None when idle."""
        return self._job.model_copy() if self._job else None

    def get_filter_config(self) -> FilterConfig:
        return self._filter_config

    async def list_candidates(self) -> list[Candidate]:
        return await self._source.list_candidates()

    def cancel(self) -> bool:
        """Request cancellation of the running job.

        The flag is checked at the start of each batch; the batch in flight
        always completes.

        Returns:
            bool: True if a job was running.
        """
        if self._job is None:
            return False
        self._job.cancelled = True
        self.logging.info("Indexing cancellation requested.")
        return True

    ##########################################
    ############### CORE INDEX ###############
    ##########################################

    async def do_index(
        self,
        candidates: list[Candidate] | None = None,
        filter_config: FilterConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> IndexResult:
        """Index all candidates that pass the filters.

        Args:
            candidates (list[Candidate] | None): Documents to consider; defaults to everything the source lists.
            filter_config (FilterConfig | None): Filter lists; defaults to the configured ones.
            progress_callback (ProgressCallback | None): Called as (completed, total, file_name) once per finished document.

        Returns:
            IndexResult: Counts of indexed, unchanged and skipped documents.

        Raises:
            IndexingInProgressError: If another job is running.
        """
        if self._job is not None:
            raise IndexingInProgressError("Indexing already in progress.")

        job = IndexJob()
        self._job = job
        try:
            if candidates is None:
                candidates = await self._source.list_candidates()
            active_filter = filter_config or self._filter_config
            files = [c for c in candidates if should_index_file(c.path, c.extension, active_filter)]
            job.total = len(files)
            result = IndexResult(total=job.total)

            self.logging.info("Starting to index %d files in batches of %d...", job.total, BATCH_SIZE)

            for batch_start in range(0, len(files), BATCH_SIZE):
                if job.cancelled:
                    self.logging.info("Indexing cancelled by user.")
                    break
                batch = files[batch_start: batch_start + BATCH_SIZE]
                await self._run_batch(batch, job, result, progress_callback)

            result.cancelled = job.cancelled
            status = "cancelled" if job.cancelled else "complete"
            self.logging.info(
                "Indexing %s! Indexed %d new/modified files, %d unchanged, %d failed.",
                status, result.indexed, result.unchanged, result.skipped,
            )

            if result.indexed > 0:
                await self._persist_index()
            return result
        finally:
            self._job = None

    async def _run_batch(
        self,
        batch: list[Candidate],
        job: IndexJob,
        result: IndexResult,
        progress_callback: ProgressCallback | None,
    ) -> None:
        """Process one batch concurrently; returns once every item has finished."""
        tasks = [asyncio.create_task(self._index_candidate(candidate)) for candidate in batch]
        for finished in asyncio.as_completed(tasks):
            candidate, outcome = await finished
            if outcome == OUTCOME_INDEXED:
                result.indexed += 1
                self.logging.debug("Indexed %d/%d: %s", result.indexed, job.total, candidate.path)
            elif outcome == OUTCOME_UNCHANGED:
                result.unchanged += 1
            else:
                result.skipped += 1
            job.completed = result.indexed + result.unchanged + result.skipped

            if progress_callback is not None:
                try:
                    progress_callback(job.completed, job.total, posixpath.basename(candidate.path))
                except Exception as exc:
                    self.logging.warning("Progress callback failed: %s", exc)

    ##########################################
    ############ DOCUMENT INDEX ##############
    ##########################################

    async def _index_candidate(self, candidate: Candidate) -> tuple[Candidate, str]:
        try:
            return candidate, await self._index_document(candidate)
        except ItemError as exc:
            self.logging.error("%s", exc)
            return candidate, OUTCOME_SKIPPED

    async def _index_document(self, candidate: Candidate) -> str:
        """Index a single document unless its content is unchanged.

        Returns:
            str: OUTCOME_INDEXED or OUTCOME_UNCHANGED.

        Raises:
            ItemError: If reading, summarising or embedding fails.
        """
        path = candidate.path
        try:
            content = await self._source.read(path)
            doc_hash = content_hash(content)

            if self._vector_store.has_unchanged(path, doc_hash):
                self.logging.debug("Skipping unchanged file: %s", path)
                return OUTCOME_UNCHANGED

            summary = await self._summary_service.summarize(content)
            await self._vector_store.do_upsert(path, content, summary, doc_hash)
        except Exception as exc:
            raise ItemError(path, str(exc) or type(exc).__name__) from exc
        return OUTCOME_INDEXED

    ##########################################
    ############ ORPHAN CLEANUP ##############
    ##########################################

    async def do_cleanup_orphans(self, candidates: list[Candidate] | None = None) -> int:
        """Remove indexed documents whose path the source no longer lists.

        Args:
            candidates (list[Candidate] | None): Current source listing; fetched if omitted.

        Returns:
            int: Number of documents removed.
        """
        if candidates is None:
            candidates = await self._source.list_candidates()
        present = {c.path for c in candidates}
        orphans = [path for path in self._vector_store.list_paths() if path not in present]
        if not orphans:
            self.logging.info("Orphan cleanup: no stale documents found.")
            return 0

        removed = sum(1 for path in orphans if self._vector_store.remove(path))
        self.logging.info("Orphan cleanup complete: removed %d document(s).", removed)
        await self._persist_index()
        return removed

    async def _persist_index(self) -> None:
        if self._state_store is None:
            return
        await self._state_store.set_section(SECTION_VECTOR_INDEX, self._vector_store.snapshot())
        self.logging.info("Vector index saved (%d documents).", self._vector_store.get_document_count())
