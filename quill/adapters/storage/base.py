"""Content store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractContentStore(ABC):
    """Interface for durable storage of generated content."""

    @abstractmethod
    async def save(self, content: str, content_type: str) -> str:
        """Persist ``content`` and return where it was stored.

        Args:
            content: Generated text.
            content_type: Content type tag of the request (e.g. "blog_post").

        Returns:
            Storage location (e.g. a file path).

        Raises:
            PersistenceAppError: If the content could not be stored.
        """
        raise NotImplementedError
