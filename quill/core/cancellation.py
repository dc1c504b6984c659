"""Cancel in-flight work when the HTTP client goes away.

Starlette keeps running an endpoint after the client disconnects. For long
backend calls that wastes a connection to the backend, so the awaited work is
run as a task and cancelled as soon as a disconnect is observed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from fastapi import Request

from quill.core.errors import ClientDisconnectedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def cancel_on_disconnect(
    request: Request,
    awaitable: Awaitable[T],
    *,
    poll_interval: float = 0.5,
) -> T:
    """Await ``awaitable``, cancelling it if the client disconnects.

    Args:
        request: Request whose connection is watched.
        awaitable: Work to run.
        poll_interval: Seconds between disconnect checks.

    Returns:
        The result of ``awaitable``.

    Raises:
        ClientDisconnectedError: If the client disconnected first.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                logger.info(
                    "request.client_disconnected",
                    extra={"request_path": request.url.path},
                )
                raise ClientDisconnectedError(
                    code="client_disconnected",
                    message="Client closed the connection before the response was ready",
                )
    finally:
        if not task.done():
            task.cancel()
