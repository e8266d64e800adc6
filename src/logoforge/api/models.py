"""Pydantic request and response models for the Logoforge gateway.

These models define the JSON schema for both endpoints.  Request fields use
the camelCase names the browser client sends (``projectName``,
``inputText``, ``useGemini``); response fields follow the payload the text
provider is asked to return (``concept_summary``).

Models
------
DesignRequest
    Payload for ``POST /generate-analysis``.
DesignResult
    The parsed provider answer: a concept summary, exactly two variants and
    a colour palette.
ImageRequest
    Payload for ``POST /generate-image``.
ImageResponse
    A data URI or remote URL plus the provider that produced it.
ErrorResponse
    Body of every 4xx/5xx response.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DesignRequest(BaseModel):
    """Request body for the ``POST /generate-analysis`` endpoint.

    Both fields are optional at the schema level: a missing or blank value
    is reported by the route as a 400 ``Missing required fields`` error
    rather than FastAPI's generic 422.

    Attributes:
        projectName: Brand name that must appear in every generated prompt.
        inputText: Free-text description of the desired visual identity.
    """

    model_config = ConfigDict(frozen=True)

    projectName: str | None = Field(
        default=None,
        description="Project / brand name (embedded verbatim in each prompt).",
    )
    inputText: str | None = Field(
        default=None,
        description="Natural-language description of the visual identity.",
    )

    def is_complete(self) -> bool:
        """True when both fields are present and non-blank."""
        return bool(
            self.projectName
            and self.projectName.strip()
            and self.inputText
            and self.inputText.strip()
        )


class Variant(BaseModel):
    """One of the two generated design proposals."""

    id: int | str
    title: str
    prompt: str


class ColorSwatch(BaseModel):
    """A named palette colour, e.g. ``{"name": "Primary", "hex": "#4f46e5"}``."""

    name: str
    hex: str


class DesignResult(BaseModel):
    """Structured design analysis returned by the text provider.

    Attributes:
        concept_summary: Short (Arabic) summary of the concept.
        variants: Exactly two design variants.
        colors: Suggested palette; may be empty.
    """

    model_config = ConfigDict(extra="ignore")

    concept_summary: str = ""
    variants: list[Variant] = Field(..., min_length=2, max_length=2)
    colors: list[ColorSwatch] = Field(default_factory=list)


class ImageRequest(BaseModel):
    """Request body for the ``POST /generate-image`` endpoint.

    Attributes:
        prompt: Image prompt, usually one variant's ``prompt``.
        useGemini: Try the primary provider before falling back.
    """

    prompt: str | None = Field(
        default=None,
        description="Image prompt (required).",
    )
    useGemini: bool = Field(
        default=True,
        description="Attempt the primary image provider first.",
    )


class ImageResponse(BaseModel):
    """Response body for a successful ``POST /generate-image`` call."""

    image: str = Field(..., description="data: URI or remote image URL.")
    source: Literal["gemini", "pollinations"]


class ErrorResponse(BaseModel):
    """Body of every error response returned by the gateway."""

    error: str
    message: str
    details: str | None = None
    retryAfter: int | None = None
