"""Storage adapters for generated content."""

from quill.adapters.storage.base import AbstractContentStore
from quill.adapters.storage.file_store import FileContentStore

__all__ = ["AbstractContentStore", "FileContentStore"]
