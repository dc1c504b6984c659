"""Factory pattern for creating text backend instances."""

from quill.adapters.llm.base import AbstractTextBackend
from quill.adapters.llm.openai_client import OpenAIClient
from quill.core.config import settings
from quill.core.errors import ValidationAppError


def create_llm_client() -> AbstractTextBackend:
    """Factory function to instantiate the text backend based on provider.

    Reads configuration from quill.core.config.settings (Pydantic Settings).
    Validates provider-specific requirements and routes to appropriate client.

    Returns:
        AbstractTextBackend: Configured backend instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    provider = settings.llm.provider.lower()

    if provider == "openai":
        if not settings.llm.api_key:
            raise ValidationAppError(
                code="llm_missing_api_key",
                message="Generative backend requires LLM_API_KEY environment variable",
            )
        return OpenAIClient(
            api_key=settings.llm.api_key,
            base_url=settings.llm.base_url,
            timeout_seconds=settings.llm.timeout_seconds,
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens,
        )

    raise ValidationAppError(
        code="llm_unknown_provider",
        message=(
            f"Unknown LLM provider: '{provider}'. Supported providers: openai"
        ),
    )
