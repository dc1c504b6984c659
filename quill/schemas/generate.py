"""Pydantic schemas for content generation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    """Content generation request body."""

    model_config = ConfigDict(str_strip_whitespace=True)

    content_type: str = Field(
        ...,
        min_length=1,
        description=(
            "Kind of content to write: blog_post, article, social_media or script. "
            "Other non-blank values are passed to the prompt verbatim."
        ),
        examples=["blog_post"],
    )
    topic: str = Field(
        ...,
        min_length=1,
        description="Subject the content is about.",
    )
    tone: str = Field(
        default="",
        description="Optional tone (e.g. 'friendly', 'formal').",
    )
    length: int = Field(
        default=0,
        ge=0,
        description="Approximate target length in words (0 for no preference).",
    )
    additional_context: str = Field(
        default="",
        description="Free-form extra instructions for the writer.",
    )


class GenerateResponse(BaseModel):
    """Generated content and where it was stored."""

    content: str = Field(..., description="Generated text.")
    filename: str | None = Field(
        default=None,
        description="Location of the stored copy; absent if persistence is disabled or failed.",
    )
