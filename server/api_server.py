"""FastAPI application entry point for the vault ask bridge."""

import asyncio
import os
from contextlib import asynccontextmanager, suppress
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.errors import ConfigurationError, IndexingInProgressError, ThreadBusyError, ThreadNotFoundError
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.source.filesystem.SourceFilesystem import SourceFilesystem
from shared.models.config import FilterConfig
from shared.storage.StateStore import SECTION_FILTERS, SECTION_PROVIDER, SECTION_VECTOR_INDEX, StateStore
from services.embedding.EmbeddingService import EmbeddingService
from services.vector_store.VectorStore import VectorStore
from services.vault_index.IndexService import IndexService
from services.vault_index.SummaryService import SummaryService
from services.vault_chat.ThreadRegistry import ThreadRegistry
from services.vault_chat.ChatService import ChatService
from server.routers.IndexRouter import router as index_router
from server.routers.QueryRouter import router as query_router
from server.routers.ThreadRouter import router as thread_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)
    helper_config = app.state.helper_config

    state_store = StateStore(helper_config=helper_config)
    await state_store.load()

    llm_client = LLMClientManager(helper_config=helper_config).get_client()
    await llm_client.boot()
    await check_connection(llm_client)

    filter_config = FilterConfig.from_helper_config(helper_config)
    await state_store.set_section(SECTION_PROVIDER, llm_client.get_provider_config())
    await state_store.set_section(SECTION_FILTERS, filter_config.model_dump())

    embedding_service = EmbeddingService(helper_config=helper_config, llm_client=llm_client)
    vector_store = VectorStore(helper_config=helper_config, embedding_service=embedding_service)
    vector_store.restore(await state_store.get_section(SECTION_VECTOR_INDEX))

    thread_registry = ThreadRegistry(helper_config=helper_config, state_store=state_store)
    await thread_registry.load()

    app.state.state_store = state_store
    app.state.llm_client = llm_client
    app.state.embedding_service = embedding_service
    app.state.vector_store = vector_store
    app.state.thread_registry = thread_registry
    app.state.index_service = IndexService(
        helper_config=helper_config,
        source=SourceFilesystem(helper_config=helper_config),
        vector_store=vector_store,
        summary_service=SummaryService(helper_config=helper_config, llm_client=llm_client),
        state_store=state_store,
        filter_config=filter_config,
    )
    app.state.chat_service = ChatService(
        helper_config=helper_config,
        llm_client=llm_client,
        vector_store=vector_store,
        thread_registry=thread_registry,
    )
    app.state.index_task = None

    logging.info(
        "Vault ask bridge ready: %d documents indexed, embedding strategy '%s'.",
        vector_store.get_document_count(),
        embedding_service.get_strategy_name(),
        color="green",
    )

    # while the app is running...
    yield

    # when the app shuts down
    logging.info("Shutting down...")
    index_task = app.state.index_task
    if index_task is not None and not index_task.done():
        if not app.state.index_service.cancel():
            # still listing candidates
            index_task.cancel()
        with suppress(asyncio.CancelledError):
            await index_task
    await llm_client.close()
    logging.info("LLM client closed.")


async def check_connection(llm_client: LLMClientInterface) -> None:
    """Check connectivity to the completion backend on startup.

    Failures are non-fatal: embeddings fall back to the local strategy and
    chat requests surface the backend error when they are made.
    """
    if not llm_client.has_api_key():
        logging.warning(
            "No API key configured for LLM engine '%s'. Using local embeddings; chat is unavailable.",
            llm_client.get_engine_name(),
        )
        return
    try:
        await llm_client.do_healthcheck()
    except Exception as exc:
        logging.warning("LLM engine '%s' is not reachable: %s", llm_client.get_engine_name(), exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP status codes."""

    @app.exception_handler(ThreadNotFoundError)
    async def thread_not_found_handler(request: Request, exc: ThreadNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ThreadBusyError)
    async def thread_busy_handler(request: Request, exc: ThreadBusyError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(IndexingInProgressError)
    async def indexing_in_progress_handler(request: Request, exc: IndexingInProgressError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})


app = FastAPI(
    title="vault_ask_bridge",
    description=(
        "Retrieval-augmented question answering over a personal document vault. "
        "Documents are indexed via POST /index and questions are answered as a "
        "text stream via POST /threads/{id}/messages."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(index_router)
app.include_router(query_router)
app.include_router(thread_router)


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting vault_ask_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
