"""HTTP middleware for request ID propagation and CORS.

``request_id_middleware``:
- Accepts incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars for access throughout the request lifecycle
- Injects request_id and request duration into response headers
- Turns unhandled exceptions into the generic 500 response
- Clears context after request completion to prevent context leaks

``cors_middleware``:
- Adds permissive cross-origin headers to every response
- Answers OPTIONS preflight requests with an empty 200 before routing, so
  preflights never reach route dependencies such as the rate limiter

Usage:
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(cors_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from quill.core.config import settings
from quill.core.exception_handlers import general_exception_handler
from quill.core.logging import clear_request_id, set_request_id

CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides an X-Request-ID header (configurable via
    LOG_REQUEST_ID_HEADER), that value is used. Otherwise, a new UUID
    is generated. The ID is then propagated back in the response headers
    and stored in contextvars for log correlation.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        # Answer here so the error response still passes through CORS and
        # carries the request id
        response = await general_exception_handler(request, exc)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


def _apply_cors_headers(response: Response) -> Response:
    response.headers["Access-Control-Allow-Origin"] = settings.app.cors_allow_origin
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    return response


async def cors_middleware(request: Request, call_next) -> Response:
    """HTTP middleware adding CORS headers and handling preflight requests.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: Empty 200 for OPTIONS, otherwise the downstream response,
            both with CORS headers.
    """

    if request.method == "OPTIONS":
        return _apply_cors_headers(Response(status_code=200))

    response: Response = await call_next(request)
    return _apply_cors_headers(response)
