"""Generative backend adapter layer."""

from quill.adapters.llm.base import AbstractTextBackend
from quill.adapters.llm.factory import create_llm_client
from quill.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractTextBackend",
    "OpenAIClient",
    "create_llm_client",
]
