"""OpenAI-compatible text backend adapter."""

from typing import Any

from openai import AsyncOpenAI

from quill.adapters.llm.base import AbstractTextBackend


class OpenAIClient(AbstractTextBackend):
    """Client for calling chat completions on an OpenAI-compatible API.

    Uses the official OpenAI Python SDK with async support. The same client
    serves every candidate model; the model is chosen per call.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: API key for authentication.
            base_url: Optional custom base URL (e.g. Gemini's OpenAI endpoint).
            timeout_seconds: Timeout for requests in seconds.
            temperature: Sampling temperature.
            max_tokens: Optional cap on generated tokens.
        """
        # Fallback across models replaces SDK-level retries
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate_text(self, model: str, prompt: str) -> list[str]:
        """Generate text using chat completions.

        Args:
            model: Model identifier (e.g., "gemini-2.5-pro").
            prompt: User prompt to send to the model.

        Returns:
            list[str]: Message content of every returned choice, in order.
            Choices without content are skipped.

        Raises:
            RuntimeError: If the API call fails.
        """
        request_params: dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            request_params["max_tokens"] = self.max_tokens

        try:
            response = await self.client.chat.completions.create(**request_params)
        except Exception as exc:
            raise RuntimeError(f"OpenAI API error: {str(exc)}") from exc

        fragments: list[str] = []
        for choice in response.choices or []:
            content = choice.message.content if choice.message else None
            text = (content or "").strip()
            if text:
                fragments.append(text)
        return fragments
