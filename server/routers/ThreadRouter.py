from contextlib import aclosing
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from server.dependencies.auth import verify_api_key
from server.models.requests import MessageRequest, RenameThreadRequest
from server.models.responses import ThreadDetail, ThreadSummary
from services.vault_chat.ChatService import ChatService
from shared.models.thread import ChatThread

router = APIRouter(prefix="/threads", tags=["threads"])


def _to_summary(thread: ChatThread, active_id: str | None) -> ThreadSummary:
    return ThreadSummary(
        id=thread.id,
        name=thread.name,
        message_count=len(thread.history),
        created_at=thread.created_at,
        updated_at=thread.updated_at,
        is_streaming=thread.is_streaming,
        active=thread.id == active_id,
    )


def _to_detail(thread: ChatThread, active_id: str | None) -> ThreadDetail:
    return ThreadDetail(**_to_summary(thread, active_id).model_dump(), history=list(thread.history))


def _active_id(request: Request) -> str | None:
    active = request.app.state.thread_registry.get_active_thread()
    return active.id if active else None


@router.get("")
async def list_threads(request: Request, _: None = Depends(verify_api_key)) -> list[ThreadSummary]:
    active_id = _active_id(request)
    return [_to_summary(t, active_id) for t in request.app.state.thread_registry.list_threads()]


@router.post("", status_code=201)
async def create_thread(request: Request, _: None = Depends(verify_api_key)) -> ThreadDetail:
    thread = await request.app.state.thread_registry.create_thread()
    return _to_detail(thread, thread.id)


@router.get("/{thread_id}")
async def get_thread(thread_id: str, request: Request, _: None = Depends(verify_api_key)) -> ThreadDetail:
    """Return a thread with its history and make it the active thread."""
    thread = request.app.state.thread_registry.switch_to(thread_id)
    return _to_detail(thread, thread.id)


@router.patch("/{thread_id}")
async def rename_thread(
    thread_id: str,
    body: RenameThreadRequest,
    request: Request,
    _: None = Depends(verify_api_key),
) -> ThreadDetail:
    thread = await request.app.state.thread_registry.rename_thread(thread_id, body.name)
    return _to_detail(thread, _active_id(request))


@router.delete("/{thread_id}")
async def delete_thread(thread_id: str, request: Request, _: None = Depends(verify_api_key)) -> dict:
    active = await request.app.state.thread_registry.delete_thread(thread_id)
    return {"deleted": thread_id, "active": active.id if active else None}


@router.post("/{thread_id}/clear")
async def clear_thread(thread_id: str, request: Request, _: None = Depends(verify_api_key)) -> ThreadDetail:
    thread = await request.app.state.thread_registry.clear_thread(thread_id)
    return _to_detail(thread, _active_id(request))


@router.get("/{thread_id}/export", response_class=PlainTextResponse)
async def export_thread(thread_id: str, request: Request, _: None = Depends(verify_api_key)) -> str:
    return request.app.state.thread_registry.export_markdown(thread_id)


class _ClaimedAnswer:
    """Answer stream of a thread whose streaming flag the request already holds.

    Iterating hands the flag to ChatService, which releases it when the stream
    ends. release_unstarted() runs after the response and frees the flag only
    if the body was never iterated (client gone before the first chunk).
    """

    def __init__(self, chat_service: ChatService, thread_registry, thread_id: str, question: str, logging):
        self._chat_service = chat_service
        self._thread_registry = thread_registry
        self._thread_id = thread_id
        self._question = question
        self._logging = logging
        self._started = False

    def release_unstarted(self) -> None:
        if not self._started:
            self._thread_registry.end_streaming(self._thread_id)

    async def stream(self) -> AsyncIterator[str]:
        """Relay answer fragments; a failure after the response started becomes a trailing error fragment."""
        self._started = True
        try:
            async with aclosing(self._chat_service.do_stream_message(self._thread_id, self._question, claimed=True)) as fragments:
                async for fragment in fragments:
                    yield fragment
        except Exception as exc:
            self._logging.error("Chat stream in thread %s failed: %s", self._thread_id, exc)
            yield f"\n\nError: {exc}"


@router.post("/{thread_id}/messages")
async def send_message(
    thread_id: str,
    body: MessageRequest,
    request: Request,
    _: None = Depends(verify_api_key),
) -> StreamingResponse:
    """Answer a question in a thread, streamed as plain text.

    Raises:
        ThreadNotFoundError: 404 if the thread does not exist.
        ThreadBusyError: 409 if the thread is already answering.
    """
    thread_registry = request.app.state.thread_registry
    # claim before the response starts, so a concurrent send gets 409
    thread_registry.begin_streaming(thread_id)
    thread_registry.switch_to(thread_id)

    answer = _ClaimedAnswer(request.app.state.chat_service, thread_registry, thread_id, body.question, request.app.state.logging)
    return StreamingResponse(
        answer.stream(),
        media_type="text/plain; charset=utf-8",
        background=BackgroundTask(answer.release_unstarted),
    )
