"""Tests for the fallback dispatcher and its state machine."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from quill.adapters.llm.base import AbstractTextBackend
from quill.services.fallback import (
    AttemptResult,
    Exhausted,
    FallbackDispatcher,
    Succeeded,
    Trying,
    next_state,
)


class ScriptedBackend(AbstractTextBackend):
    """Backend answering from a per-model script and recording calls."""

    def __init__(self, script: dict) -> None:
        self.script = script
        self.calls: list[tuple[str, str]] = []

    async def generate_text(self, model: str, prompt: str) -> list[str]:
        self.calls.append((model, prompt))
        answer = self.script[model]
        if isinstance(answer, BaseException):
            raise answer
        return answer


class TestNextState:
    """Pure transition function."""

    def test_usable_result_succeeds(self) -> None:
        result = AttemptResult(model="a", fragments=("hello", "world"))

        assert next_state(Trying(0), result, 3) == Succeeded(text="hello\nworld", model="a")

    def test_error_advances_to_next_candidate(self) -> None:
        result = AttemptResult(model="a", error=RuntimeError("boom"))

        assert next_state(Trying(0), result, 3) == Trying(1)

    def test_empty_result_advances_to_next_candidate(self) -> None:
        result = AttemptResult(model="a", fragments=("",))

        assert next_state(Trying(1), result, 3) == Trying(2)

    def test_last_failure_exhausts(self) -> None:
        result = AttemptResult(model="c")

        assert next_state(Trying(2), result, 3) == Exhausted(attempts=3)

    @pytest.mark.parametrize("state", [Succeeded(text="x", model="a"), Exhausted(attempts=1)])
    def test_terminal_states_have_no_transition(self, state) -> None:
        with pytest.raises(ValueError):
            next_state(state, AttemptResult(model="a", fragments=("x",)), 1)


class TestFallbackDispatcher:
    """Dispatch across candidates."""

    @pytest.mark.asyncio
    async def test_first_success_wins(self) -> None:
        backend = ScriptedBackend({"x": ["from x"], "y": ["from y"]})
        dispatcher = FallbackDispatcher(backend, ["x", "y"])

        outcome = await dispatcher.generate("prompt")

        assert outcome.ok is True
        assert outcome.text == "from x"
        assert outcome.model == "x"
        assert [model for model, _ in backend.calls] == ["x"]

    @pytest.mark.asyncio
    async def test_error_then_empty_then_success(self) -> None:
        backend = ScriptedBackend({
            "X": RuntimeError("model unavailable"),
            "Y": [],
            "Z": ["part one", "part two"],
        })
        dispatcher = FallbackDispatcher(backend, ["X", "Y", "Z"])

        outcome = await dispatcher.generate("write something")

        assert outcome.ok is True
        assert outcome.text == "part one\npart two"
        assert outcome.model == "Z"
        assert outcome.attempted == ("X", "Y", "Z")
        assert backend.calls == [
            ("X", "write something"),
            ("Y", "write something"),
            ("Z", "write something"),
        ]

    @pytest.mark.asyncio
    async def test_all_failing_is_exhausted(self) -> None:
        backend = ScriptedBackend({
            "a": RuntimeError("down"),
            "b": [""],
            "c": ValueError("bad response"),
        })
        dispatcher = FallbackDispatcher(backend, ["a", "b", "c"])

        outcome = await dispatcher.generate("prompt")

        assert outcome.ok is False
        assert outcome.text is None
        assert outcome.model is None
        assert outcome.attempted == ("a", "b", "c")
        assert "3" in outcome.failure_reason
        assert [model for model, _ in backend.calls] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failed_candidate(self) -> None:
        class SlowFirstBackend(AbstractTextBackend):
            async def generate_text(self, model: str, prompt: str) -> list[str]:
                if model == "slow":
                    await asyncio.sleep(5)
                return [f"from {model}"]

        dispatcher = FallbackDispatcher(
            SlowFirstBackend(), ["slow", "fast"], attempt_timeout_seconds=0.01
        )

        outcome = await dispatcher.generate("prompt")

        assert outcome.model == "fast"
        assert outcome.attempted == ("slow", "fast")

    @pytest.mark.asyncio
    async def test_cancellation_is_not_absorbed(self) -> None:
        backend = AsyncMock(spec=AbstractTextBackend)
        backend.generate_text.side_effect = asyncio.CancelledError()
        dispatcher = FallbackDispatcher(backend, ["a", "b"])

        with pytest.raises(asyncio.CancelledError):
            await dispatcher.generate("prompt")

        assert backend.generate_text.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_prompt_rejected(self) -> None:
        dispatcher = FallbackDispatcher(ScriptedBackend({}), ["a"])

        with pytest.raises(ValueError):
            await dispatcher.generate("")

    def test_requires_candidates(self) -> None:
        with pytest.raises(ValueError):
            FallbackDispatcher(ScriptedBackend({}), [])

        with pytest.raises(ValueError):
            FallbackDispatcher(ScriptedBackend({}), ["a", ""])

    def test_candidate_order_is_preserved(self) -> None:
        dispatcher = FallbackDispatcher(ScriptedBackend({}), ["z", "a", "m"])

        assert dispatcher.candidates == ("z", "a", "m")
