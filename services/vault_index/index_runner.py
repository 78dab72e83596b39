"""Index runner entry point.

Indexes the configured vault folder into the persisted vector index once,
reporting progress on the console, then exits.

Usage:
    python -m services.vault_index.index_runner
"""

import asyncio

from services.embedding.EmbeddingService import EmbeddingService
from services.vault_index.IndexService import IndexService
from services.vault_index.SummaryService import SummaryService
from services.vector_store.VectorStore import VectorStore
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.source.filesystem.SourceFilesystem import SourceFilesystem
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.config import FilterConfig
from shared.storage.StateStore import SECTION_FILTERS, SECTION_PROVIDER, SECTION_VECTOR_INDEX, StateStore

logging = setup_logging()


async def main() -> None:
    """Run one full indexing pass."""
    config = HelperConfig(logger=logging)
    state_store = StateStore(helper_config=config)
    await state_store.load()

    llm_client = LLMClientManager(helper_config=config).get_client()
    await llm_client.boot()

    try:
        # the completion backend is optional: summaries and embeddings fall back to local strategies
        if llm_client.has_api_key():
            try:
                await llm_client.do_healthcheck()
            except Exception as e:
                logging.warning(f"LLM engine {llm_client.get_engine_name()} is not reachable: {e}. Continuing with fallbacks.")
        else:
            logging.warning(f"No API key for LLM engine {llm_client.get_engine_name()}. Using local embeddings and truncated summaries.")

        filter_config = FilterConfig.from_helper_config(config)
        await state_store.set_section(SECTION_PROVIDER, llm_client.get_provider_config())
        await state_store.set_section(SECTION_FILTERS, filter_config.model_dump())

        embedding_service = EmbeddingService(helper_config=config, llm_client=llm_client)
        vector_store = VectorStore(helper_config=config, embedding_service=embedding_service)
        restored = vector_store.restore(await state_store.get_section(SECTION_VECTOR_INDEX))
        logging.info(f"Restored {restored} documents from {state_store.get_path()}.")

        index_service = IndexService(
            helper_config=config,
            source=SourceFilesystem(helper_config=config),
            vector_store=vector_store,
            summary_service=SummaryService(helper_config=config, llm_client=llm_client),
            state_store=state_store,
            filter_config=filter_config,
        )

        def report_progress(completed: int, total: int, file_name: str) -> None:
            logging.info(f"Indexing {completed}/{total}: {file_name}")

        candidates = await index_service.list_candidates()
        result = await index_service.do_index(candidates=candidates, progress_callback=report_progress)
        if config.get_bool_val("INDEX_CLEANUP_ORPHANS", default=False):
            await index_service.do_cleanup_orphans(candidates=candidates)

        logging.info(
            f"Done: {result.indexed} indexed, {result.unchanged} unchanged, {result.skipped} failed "
            f"of {result.total} files. {vector_store.get_document_count()} documents in the index.",
            color="green",
        )
    finally:
        await llm_client.close()


if __name__ == "__main__":
    asyncio.run(main())
