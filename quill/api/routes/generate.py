"""Content generation endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from quill.adapters.llm.factory import create_llm_client
from quill.adapters.storage.file_store import FileContentStore
from quill.core.cancellation import cancel_on_disconnect
from quill.core.config import settings
from quill.core.rate_limit import enforce_rate_limit
from quill.schemas.generate import GenerateRequest, GenerateResponse
from quill.services.content_service import ContentService
from quill.services.fallback import FallbackDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Content"])

# Initialize dependencies for the generation endpoint
_dispatcher = FallbackDispatcher(
    backend=create_llm_client(),
    candidates=settings.llm.candidate_models(),
    attempt_timeout_seconds=settings.llm.timeout_seconds,
)
_store = FileContentStore(settings.app.output_dir) if settings.app.persist_content else None
_content_service = ContentService(dispatcher=_dispatcher, store=_store)


@router.post(
    "/api/generate",
    response_model=GenerateResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_rate_limit)],
)
async def generate_content(payload: GenerateRequest, request: Request) -> GenerateResponse:
    """Generate content for a topic.

    Builds a prompt from the request, tries the configured models in priority
    order and returns the first usable text. The text is also stored when
    persistence is enabled; storage failures only drop ``filename``.

    Args:
        payload: Content type, topic and optional tone, length and context.
        request: Incoming request, watched for client disconnects.

    Returns:
        GenerateResponse: Generated text and the stored file, if any.

    Raises:
        LLMAppError: 500 when every candidate model failed.
        ClientDisconnectedError: When the client left before generation finished.
    """
    result = await cancel_on_disconnect(
        request,
        _content_service.generate(payload),
        poll_interval=settings.app.disconnect_poll_seconds,
    )

    logger.info(
        "content.generated",
        extra={
            "content_type": payload.content_type,
            "model": result.model,
            "chars": len(result.content),
            "persisted": result.filename is not None,
        },
    )
    return GenerateResponse(content=result.content, filename=result.filename)
