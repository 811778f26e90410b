"""Chat routes: ``POST /api/chat`` and the ``GET /api/ask`` debug proxy."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from praxischat.config import config
from praxischat.models import ChatReply, ChatTurn, FailureReason
from praxischat.pipeline import ChatPipeline

from .schemas import AskResponse, ChatRequest, ChatResponse, ChatTurnSchema

logger = config.get_logger(__name__)

router = APIRouter()


def get_pipeline(request: Request) -> ChatPipeline:
    """Return the pipeline created for this application."""  # noqa: DOC201
    return request.app.state.pipeline


def reply_to_response(reply: ChatReply) -> JSONResponse | None:
    """Map a failed reply onto its HTTP error response.

    Returns:
        JSONResponse for failures, None for successful replies.
    """
    if reply.ok:
        return None

    if reply.failure is FailureReason.MISSING_MESSAGE:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": reply.text},
        )

    if reply.failure is FailureReason.MISSING_TENANT_SLUG:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"text": reply.text},
        )

    content: dict[str, object] = {"ok": False, "error": "server error", "text": reply.text}
    if config.is_development() and reply.detail:
        content["detail"] = reply.detail
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )


async def _read_chat_request(request: Request) -> ChatRequest:
    """Parse the body leniently; embeds sometimes post an empty body.

    A body that is not a JSON object counts as empty. Fields that are not
    strings are dropped one by one, so a valid message survives a bad slug.

    Returns:
        ChatRequest with whichever fields could be read.
    """
    try:
        body = await request.json()
    except ValueError:
        return ChatRequest()
    if not isinstance(body, dict):
        return ChatRequest()

    return ChatRequest.model_validate({
        name: value
        for name, value in body.items()
        if name in ChatRequest.model_fields and isinstance(value, str)
    })


@router.post("/api/chat", response_model=ChatResponse)
async def chat(
    request: Request,
    pipeline: ChatPipeline = Depends(get_pipeline),  # noqa: B008
):
    """Answer one chat message for the tenant named in the body or Referer."""
    payload = await _read_chat_request(request)
    reply = await run_in_threadpool(
        pipeline.answer,
        payload.message,
        payload.slug,
        request.headers.get("referer"),
    )
    return reply_to_response(reply) or ChatResponse(text=reply.text)


@router.get("/api/ask", response_model=AskResponse)
def ask(
    slug: str | None = None,
    q: str = "Hallo",
    pipeline: ChatPipeline = Depends(get_pipeline),  # noqa: B008
):
    """Run one question through the pipeline, for manual testing."""
    reply = pipeline.answer(q, slug or config.DEMO_TENANT_SLUG)
    error_response = reply_to_response(reply)
    if error_response is not None:
        return error_response

    turns = [ChatTurn(role="user", text=q), ChatTurn(role="assistant", text=reply.text)]
    return AskResponse(
        text=reply.text,
        turns=[ChatTurnSchema(role=turn.role, text=turn.text) for turn in turns],
    )
