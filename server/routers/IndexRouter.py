import asyncio

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import IndexStatusResponse
from shared.storage.StateStore import SECTION_VECTOR_INDEX

router = APIRouter(prefix="/index", tags=["index"])


def _is_job_active(app: FastAPI) -> bool:
    # the task lists candidates before do_index() registers the job
    task = app.state.index_task
    return app.state.index_service.is_indexing() or (task is not None and not task.done())


def _build_status(request: Request) -> IndexStatusResponse:
    index_service = request.app.state.index_service
    return IndexStatusResponse(
        running=_is_job_active(request.app),
        job=index_service.get_job(),
        document_count=request.app.state.vector_store.get_document_count(),
        embedding_strategy=request.app.state.embedding_service.get_strategy_name(),
    )


async def _run_index_job(app: FastAPI) -> None:
    logging = app.state.logging
    index_service = app.state.index_service
    helper_config = app.state.helper_config
    try:
        candidates = await index_service.list_candidates()
        await index_service.do_index(candidates=candidates)
        if helper_config.get_bool_val("INDEX_CLEANUP_ORPHANS", default=False):
            await index_service.do_cleanup_orphans(candidates=candidates)
    except Exception as exc:
        logging.error("Background indexing failed: %s", exc)


@router.post("", status_code=202)
async def start_index(request: Request, _: None = Depends(verify_api_key)) -> IndexStatusResponse:
    """Start a background indexing job over the configured source.

    Returns:
        IndexStatusResponse: Status right after the job was scheduled.

    Raises:
        HTTPException: 409 if a job is already running.
    """
    if _is_job_active(request.app):
        raise HTTPException(status_code=409, detail="Indexing already in progress.")

    request.app.state.index_task = asyncio.create_task(_run_index_job(request.app))
    return _build_status(request)


@router.post("/cancel")
async def cancel_index(request: Request, _: None = Depends(verify_api_key)) -> dict:
    cancelled = request.app.state.index_service.cancel()
    task = request.app.state.index_task
    if not cancelled and task is not None and not task.done():
        # still listing candidates, no batch has started
        task.cancel()
        cancelled = True
    return {"cancelled": cancelled}


@router.get("/status")
async def index_status(request: Request, _: None = Depends(verify_api_key)) -> IndexStatusResponse:
    return _build_status(request)


@router.delete("")
async def clear_index(request: Request, _: None = Depends(verify_api_key)) -> IndexStatusResponse:
    """Remove every document from the index and persist the empty index.

    Raises:
        HTTPException: 409 while a job is running.
    """
    if _is_job_active(request.app):
        raise HTTPException(status_code=409, detail="Cannot clear the index while indexing.")
    vector_store = request.app.state.vector_store
    vector_store.clear()
    await request.app.state.state_store.set_section(SECTION_VECTOR_INDEX, vector_store.snapshot())
    request.app.state.logging.info("Vector index cleared.")
    return _build_status(request)
