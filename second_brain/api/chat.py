"""Chat endpoint: retrieval, prompt assembly and stream relay."""

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from second_brain.api.dependencies import get_completion_relay, get_context_retriever
from second_brain.chat.prompt import assemble_request
from second_brain.chat.relay import EVENT_STREAM_MEDIA_TYPE, CompletionRelay
from second_brain.chat.retriever import ContextRetriever
from second_brain.models.schemas import ChatRequest, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post(
    "",
    response_class=StreamingResponse,
    responses={
        200: {"content": {EVENT_STREAM_MEDIA_TYPE: {}}},
        402: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def chat(
    request: ChatRequest,
    retriever: ContextRetriever = Depends(get_context_retriever),
    relay: CompletionRelay = Depends(get_completion_relay),
) -> StreamingResponse:
    """Answer the conversation from the knowledge base, streamed.

    The latest user message drives retrieval; matching excerpts go into
    the system instruction and the backend's event stream is relayed as
    is. Backend failures before streaming become JSON errors (429, 402
    or 500).
    """
    # Store query is blocking; keep it off the event loop
    excerpts = await run_in_threadpool(retriever.retrieve, request.messages)
    assembled = assemble_request(excerpts, request.messages)

    stream = await relay.open_stream(assembled)
    return StreamingResponse(
        stream.iter_bytes(),
        media_type=EVENT_STREAM_MEDIA_TYPE,
        background=BackgroundTask(stream.aclose),
    )
