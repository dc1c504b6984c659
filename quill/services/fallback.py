"""Priority-ordered fallback across backend models.

The dispatcher tries each candidate model in order and stops at the first one
that returns usable text. A candidate that raises, times out, or answers with
nothing counts as failed and the next candidate is tried. No candidate is
retried and the order is never changed.

The loop is driven by a small state machine::

    Trying(i) --usable--------------------> Succeeded
    Trying(i) --failed, i+1 < n-----------> Trying(i + 1)
    Trying(i) --failed, i+1 == n----------> Exhausted

``next_state`` is a pure function so the transition rules can be tested
without any backend.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence, Union

from quill.adapters.llm.base import AbstractTextBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trying:
    index: int


@dataclass(frozen=True)
class Succeeded:
    text: str
    model: str


@dataclass(frozen=True)
class Exhausted:
    attempts: int


DispatchState = Union[Trying, Succeeded, Exhausted]


@dataclass(frozen=True)
class AttemptResult:
    """What a single candidate attempt produced."""

    model: str
    fragments: tuple[str, ...] = ()
    error: BaseException | None = None

    @property
    def usable(self) -> bool:
        return self.error is None and any(self.fragments)

    @property
    def text(self) -> str:
        return "\n".join(self.fragments)


@dataclass(frozen=True)
class GenerationOutcome:
    """Terminal result of a dispatch.

    Attributes:
        text: Generated text (None on failure).
        model: Candidate that produced the text (None on failure).
        attempted: Candidates tried, in order.
        failure_reason: Why the dispatch failed (None on success).
    """

    text: str | None
    model: str | None
    attempted: tuple[str, ...]
    failure_reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure_reason is None

    @classmethod
    def success(cls, text: str, model: str, attempted: Sequence[str]) -> "GenerationOutcome":
        return cls(text=text, model=model, attempted=tuple(attempted))

    @classmethod
    def exhausted(cls, attempted: Sequence[str]) -> "GenerationOutcome":
        return cls(
            text=None,
            model=None,
            attempted=tuple(attempted),
            failure_reason=f"failed to generate content with any of {len(attempted)} candidate model(s)",
        )


def next_state(state: DispatchState, result: AttemptResult, candidate_count: int) -> DispatchState:
    """Compute the dispatcher state after an attempt.

    Args:
        state: Current state; must be ``Trying``.
        result: Outcome of the attempt made in ``state``.
        candidate_count: Number of candidates in the list.

    Returns:
        The following state.

    Raises:
        ValueError: If ``state`` is terminal.
    """
    if not isinstance(state, Trying):
        raise ValueError(f"no transition out of terminal state {state!r}")

    if result.usable:
        return Succeeded(text=result.text, model=result.model)
    if state.index + 1 < candidate_count:
        return Trying(state.index + 1)
    return Exhausted(attempts=candidate_count)


class FallbackDispatcher:
    """Generate text by walking an ordered list of candidate models.

    Attributes:
        backend: Text backend used for every attempt.
        candidates: Candidate model identifiers, highest priority first.
    """

    def __init__(
        self,
        backend: AbstractTextBackend,
        candidates: Sequence[str],
        *,
        attempt_timeout_seconds: float | None = None,
    ) -> None:
        if not candidates:
            raise ValueError("at least one candidate model is required")
        if any(not candidate for candidate in candidates):
            raise ValueError("candidate model identifiers must be non-empty")

        self.backend = backend
        self.candidates: tuple[str, ...] = tuple(candidates)
        self._attempt_timeout = attempt_timeout_seconds

    async def _attempt(self, model: str, prompt: str) -> AttemptResult:
        try:
            fragments = await asyncio.wait_for(
                self.backend.generate_text(model, prompt),
                timeout=self._attempt_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "dispatch.candidate_failed",
                extra={
                    "model": model,
                    "reason": "timeout",
                    "timeout_seconds": self._attempt_timeout,
                },
            )
            return AttemptResult(model=model, error=exc)
        except Exception as exc:
            logger.warning(
                "dispatch.candidate_failed",
                extra={
                    "model": model,
                    "reason": "error",
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return AttemptResult(model=model, error=exc)

        result = AttemptResult(model=model, fragments=tuple(fragments or ()))
        if not result.usable:
            logger.warning(
                "dispatch.candidate_failed",
                extra={"model": model, "reason": "empty_response"},
            )
        return result

    async def generate(self, prompt: str) -> GenerationOutcome:
        """Produce text for ``prompt`` from the first candidate that delivers.

        Args:
            prompt: Non-empty prompt text.

        Returns:
            GenerationOutcome: success with the text and model, or an
            exhausted failure listing every attempted candidate.

        Raises:
            ValueError: If prompt is empty.
        """
        if not prompt:
            raise ValueError("prompt must be a non-empty string")

        attempted: list[str] = []
        state: DispatchState = Trying(0)

        while isinstance(state, Trying):
            model = self.candidates[state.index]
            attempted.append(model)
            result = await self._attempt(model, prompt)
            state = next_state(state, result, len(self.candidates))

        if isinstance(state, Succeeded):
            logger.info(
                "dispatch.succeeded",
                extra={"model": state.model, "attempts": len(attempted), "chars": len(state.text)},
            )
            return GenerationOutcome.success(state.text, state.model, attempted)

        logger.error(
            "dispatch.exhausted",
            extra={"attempts": state.attempts, "candidates": list(attempted)},
        )
        return GenerationOutcome.exhausted(attempted)
