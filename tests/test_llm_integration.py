"""Integration tests for the text backend adapter layer."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from quill.adapters.llm import OpenAIClient, create_llm_client
from quill.core.config import GEMINI_OPENAI_BASE_URL, settings
from quill.core.errors import ValidationAppError


def make_response(*contents: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content)) for content in contents]
    return response


class TestOpenAIClient:
    """OpenAI-compatible client with mocked API calls."""

    @pytest.mark.asyncio
    async def test_returns_choice_contents_in_order(self) -> None:
        client = OpenAIClient(api_key="test-key-123")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=make_response("first", "  second  "),
        ) as mock_create:
            fragments = await client.generate_text("gemini-2.5-pro", "Write a haiku")

        assert fragments == ["first", "second"]
        call_kwargs = mock_create.call_args.kwargs
        assert call_kwargs["model"] == "gemini-2.5-pro"
        assert call_kwargs["messages"] == [{"role": "user", "content": "Write a haiku"}]
        assert "max_tokens" not in call_kwargs

    @pytest.mark.asyncio
    async def test_blank_choices_are_dropped(self) -> None:
        client = OpenAIClient(api_key="test-key-123")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=make_response(None, "   "),
        ):
            fragments = await client.generate_text("m", "p")

        assert fragments == []

    @pytest.mark.asyncio
    async def test_passes_max_tokens_when_configured(self) -> None:
        client = OpenAIClient(api_key="test-key-123", max_tokens=256, temperature=0.2)

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=make_response("ok"),
        ) as mock_create:
            await client.generate_text("m", "p")

        assert mock_create.call_args.kwargs["max_tokens"] == 256
        assert mock_create.call_args.kwargs["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self) -> None:
        client = OpenAIClient(api_key="test-key-123")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=ConnectionError("network down"),
        ):
            with pytest.raises(RuntimeError, match="OpenAI API error"):
                await client.generate_text("m", "p")

    def test_sdk_retries_disabled(self) -> None:
        client = OpenAIClient(api_key="test-key-123")

        assert client.client.max_retries == 0


class TestFactory:
    """create_llm_client configuration checks."""

    def test_builds_openai_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.llm, "provider", "openai")
        monkeypatch.setattr(settings.llm, "api_key", "abc")
        monkeypatch.setattr(settings.llm, "base_url", GEMINI_OPENAI_BASE_URL)

        client = create_llm_client()

        assert isinstance(client, OpenAIClient)
        assert str(client.client.base_url) == GEMINI_OPENAI_BASE_URL

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.llm, "provider", "openai")
        monkeypatch.setattr(settings.llm, "api_key", None)

        with pytest.raises(ValidationAppError) as exc_info:
            create_llm_client()

        assert exc_info.value.code == "llm_missing_api_key"

    def test_unknown_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.llm, "provider", "carrier-pigeon")

        with pytest.raises(ValidationAppError) as exc_info:
            create_llm_client()

        assert exc_info.value.code == "llm_unknown_provider"
