"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from quill.core.errors import (
    AppError,
    ClientDisconnectedError,
    LLMAppError,
    PersistenceAppError,
    ValidationAppError,
)
from quill.core.exception_handlers import general_exception_handler, setup_exception_handlers


class Body(BaseModel):
    name: str


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def endpoint():
            raise ValidationAppError(code="test_validation", message="Test validation error")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "test_validation"
        assert data["error"]["message"] == "Test validation error"
        assert "request_id" in data["error"]

    def test_llm_error_returns_500_with_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-llm")
        async def endpoint():
            raise LLMAppError(
                code="generation_failed",
                message="Failed to generate content with any available model",
                details={"attempts": 3},
            )

        response = client.get("/test-llm")

        assert response.status_code == 500
        assert response.json()["error"]["details"] == {"attempts": 3}

    def test_persistence_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-persist")
        async def endpoint():
            raise PersistenceAppError(code="persistence_failed", message="disk full")

        assert client.get("/test-persist").status_code == 500

    def test_client_disconnect_returns_499(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-disconnect")
        async def endpoint():
            raise ClientDisconnectedError(code="client_disconnected", message="gone")

        assert client.get("/test-disconnect").status_code == 499


class TestRequestValidationHandler:
    """Body validation errors map to 400."""

    def test_missing_field_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/test-body")
        async def endpoint(body: Body):
            return body

        response = client.post("/test-body", json={})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_request"
        assert error["details"]["errors"][0]["loc"] == ["body", "name"]


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_general_exception_handler_never_leaks_details(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("database connection failed")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "database connection" not in data["error"]["message"]
        assert "RuntimeError" not in bytes(response.body).decode()

    def test_setup_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers
