"""Filesystem content store.

Each generated text is written to its own UTF-8 file named after the content
type and the UTC time of the write.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from quill.adapters.storage.base import AbstractContentStore
from quill.core.errors import PersistenceAppError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def safe_filename_stem(content_type: str) -> str:
    """Reduce a content type tag to characters safe for a file name.

    Examples:
        >>> safe_filename_stem("blog_post")
        'blog_post'
        >>> safe_filename_stem("../etc/passwd")
        'etc_passwd'
    """
    stem = _UNSAFE_FILENAME_CHARS.sub("_", content_type).strip("_")
    return stem or "content"


class FileContentStore(AbstractContentStore):
    """Write generated content to ``output_dir``."""

    def __init__(
        self,
        output_dir: str | Path = "generated_content",
        *,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._output_dir = Path(output_dir)
        self._now = now

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def _build_path(self, content_type: str) -> Path:
        timestamp = self._now().strftime("%Y%m%d_%H%M%S_%f")
        return self._output_dir / f"{safe_filename_stem(content_type)}_{timestamp}.txt"

    def _write(self, content: str, content_type: str) -> str:
        path = self._build_path(content_type)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)

    async def save(self, content: str, content_type: str) -> str:
        """Write content to a new file without blocking the event loop.

        Raises:
            PersistenceAppError: If the directory or file cannot be written.
        """
        loop = asyncio.get_running_loop()
        try:
            path = await loop.run_in_executor(None, self._write, content, content_type)
        except OSError as exc:
            raise PersistenceAppError(
                code="persistence_failed",
                message=f"Could not write generated content: {exc.strerror or exc}",
                details={"content_type": content_type},
            ) from exc

        logger.info(
            "content.persisted",
            extra={"path": path, "content_type": content_type, "chars": len(content)},
        )
        return path
