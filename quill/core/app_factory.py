"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests and the server entry point build the same application.
"""

from __future__ import annotations

from fastapi import FastAPI

from quill.api.routes import generate_router, health_router
from quill.core.config import settings
from quill.core.exception_handlers import setup_exception_handlers
from quill.core.logging import configure_logging
from quill.core.middleware import cors_middleware, request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Quill Content API",
        description=(
            "Generates blog posts, articles, social media posts and scripts with a "
            "generative text backend, falling back across models in priority order. "
            "Mutating endpoints are rate limited per client."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    # Middleware: the last one added runs first, so CORS wraps request-id
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(cors_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(generate_router)
    app.include_router(health_router)

    return app
