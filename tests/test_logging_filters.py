"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from quill.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    clear_request_id,
    redact,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired to an in-memory stream with redaction enabled."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()


def test_redacts_prompt_and_generated_content(capture):
    logger, stream = capture

    logger.info(
        "dispatch.debug",
        extra={
            "prompt": "Write a blog post about my secret launch",
            "content": "Generated draft text",
            "topic": "secret launch",
            "model": "gemini-2.5-pro",
        },
    )

    output = stream.getvalue()
    assert "secret launch" not in output
    assert "Generated draft text" not in output
    assert "[REDACTED]" in output
    assert "gemini-2.5-pro" in output


def test_redacts_api_keys_in_nested_dicts(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={"headers": {"Authorization": "Bearer sk-123", "user-agent": "pytest"}},
    )

    output = stream.getvalue()
    assert "sk-123" not in output
    assert "pytest" in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info("rate_limit.exceeded", extra={"key_hash": "abc123", "limit": 5, "retry_after_s": 60})

    record = json.loads(stream.getvalue())
    assert record["message"] == "rate_limit.exceeded"
    assert record["limit"] == 5
    assert record["retry_after_s"] == 60
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context(capture):
    logger, stream = capture

    set_request_id("req-42")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-42"


def test_redact_keeps_sequence_types():
    value = redact({"items": ({"token": "x"}, {"n": 1})})

    assert value == {"items": ({"token": "[REDACTED]"}, {"n": 1})}
