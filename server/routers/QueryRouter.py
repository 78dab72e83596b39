from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import SearchRequest
from server.models.responses import SearchResponse

router = APIRouter(prefix="/query", tags=["query"])


@router.post("")
async def query_documents(
    request: Request,
    body: SearchRequest,
    _: None = Depends(verify_api_key),
) -> SearchResponse:
    """Execute a semantic search against the vault index.

    Args:
        request (Request): FastAPI request (provides app.state.vector_store).
        body (SearchRequest): JSON body with query string and limit.
        _ (None): Auth dependency result (unused).

    Returns:
        SearchResponse: Matching documents, most similar first.
    """
    vector_store = request.app.state.vector_store
    hits = await vector_store.search(body.query, k=body.limit)
    return SearchResponse(query=body.query, results=hits, total=len(hits))
