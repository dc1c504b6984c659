"""Content generation service.

Turns a validated request into a prompt, runs it through the fallback
dispatcher and stores the result. It handles:
- Prompt construction from the request fields
- Dispatch across the candidate models
- Best-effort persistence (failures are logged, never raised)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from quill.adapters.storage.base import AbstractContentStore
from quill.core.errors import LLMAppError, PersistenceAppError
from quill.schemas.generate import GenerateRequest
from quill.services.fallback import FallbackDispatcher

logger = logging.getLogger(__name__)


def build_prompt(request: GenerateRequest) -> str:
    """Build the generation prompt for a request.

    Args:
        request: Validated generation request.

    Returns:
        Prompt string for the backend.

    Examples:
        >>> build_prompt(GenerateRequest(content_type="blog_post", topic="tea"))
        "Write a blog post about 'tea'"
    """
    prompt = f"Write a {request.content_type.replace('_', ' ')} about '{request.topic}'"

    if request.tone:
        prompt += f" in a {request.tone} tone"

    if request.length > 0:
        prompt += f". Aim for approximately {request.length} words"

    if request.additional_context:
        prompt += f". Additional context: {request.additional_context}"

    return prompt


@dataclass(frozen=True)
class GeneratedContent:
    content: str
    model: str
    filename: str | None = None


class ContentService:
    """Service generating and storing content.

    Attributes:
        dispatcher: Fallback dispatcher over the candidate models.
        store: Optional content store; None disables persistence.
    """

    def __init__(self, dispatcher: FallbackDispatcher, store: AbstractContentStore | None = None) -> None:
        self.dispatcher = dispatcher
        self.store = store

    async def _persist(self, content: str, content_type: str) -> str | None:
        if self.store is None:
            return None

        try:
            return await self.store.save(content, content_type)
        except PersistenceAppError as exc:
            logger.error(
                "content.persist_failed",
                extra={
                    "error_code": exc.code,
                    "error_message": exc.message,
                    "content_type": content_type,
                },
            )
            return None

    async def generate(self, request: GenerateRequest) -> GeneratedContent:
        """Generate content for a request.

        Args:
            request: Validated generation request.

        Returns:
            GeneratedContent with the text, producing model and storage location.

        Raises:
            LLMAppError: If every candidate model failed.
        """
        prompt = build_prompt(request)
        outcome = await self.dispatcher.generate(prompt)

        if not outcome.ok or outcome.text is None or outcome.model is None:
            raise LLMAppError(
                code="generation_failed",
                message="Failed to generate content with any available model",
                details={"attempts": len(outcome.attempted)},
            )

        filename = await self._persist(outcome.text, request.content_type)
        return GeneratedContent(content=outcome.text, model=outcome.model, filename=filename)
