"""
HTTP endpoints for the generation flows.

The workflow calls the flows in-process; these routes expose the same
functions so other clients can reuse the intent analysis and the draft
answer generation directly.
"""

from typing import AsyncIterator

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from . import flows
from .llm import GenerationError
from .models import DraftAnswer, DraftAnswerRequest, QueryPayload, SearchIntent


router = APIRouter(prefix="/flows", tags=["flows"])


def _require_query(query: str) -> None:
    if not query.strip():
        raise HTTPException(status_code=400, detail="Query must not be empty.")


@router.post("/intent", response_model=SearchIntent)
async def analyze_intent(payload: QueryPayload) -> SearchIntent:
    """Classify the query and pick the data sources to search."""
    _require_query(payload.query)
    try:
        return await flows.analyze_intent(payload.query)
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=f"Intent analysis failed: {exc}") from exc


@router.post("/draft-answer", response_model=DraftAnswer)
async def draft_answer(payload: DraftAnswerRequest) -> DraftAnswer:
    _require_query(payload.query)
    try:
        return await flows.generate_draft_answer(payload.query, payload.search_results)
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=f"Answer generation failed: {exc}") from exc


@router.post("/draft-answer/stream")
async def draft_answer_stream(payload: DraftAnswerRequest) -> StreamingResponse:
    """
    Stream the draft answer as plain text.

    The first fragment is fetched before responding so that a service
    that is down still maps to a 502. A failure after that can only end
    the stream early; the status code is already on the wire.
    """
    _require_query(payload.query)
    fragments = flows.generate_draft_answer_stream(payload.query, payload.search_results)
    try:
        first = await fragments.__anext__()
    except StopAsyncIteration:
        first = ""
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=f"Answer generation failed: {exc}") from exc

    async def body() -> AsyncIterator[str]:
        if first:
            yield first
        async for fragment in fragments:
            yield fragment

    return StreamingResponse(body(), media_type="text/plain; charset=utf-8")
