from __future__ import annotations

from quill.api.routes.generate import router as generate_router
from quill.api.routes.health import router as health_router

__all__ = ["generate_router", "health_router"]
