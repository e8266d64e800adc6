"""Decoding of provider responses.

Two payload families are handled here:

- **Text responses** from ``:generateContent``.  The JSON document the model
  was asked for is embedded as a string in
  ``candidates[0].content.parts[0].text`` and is sometimes wrapped in
  markdown code fences despite the JSON response MIME type.
- **Image responses** from the primary image provider, which come in one of
  two shapes:

  ``predictions`` shape::

      {"predictions": [{"bytesBase64Encoded": "...", "mimeType": "image/png"}]}

  ``candidates`` / inline-data shape::

      {"candidates": [{"content": {"parts": [
          {"text": "..."},
          {"inlineData": {"mimeType": "image/png", "data": "..."}}
      ]}}]}

  :func:`decode_image_payload` tries the predictions shape, then the
  candidates shape, and raises :class:`NoImageData` when neither matches.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError as PydanticValidationError

from logoforge.api.models import DesignResult
from logoforge.core.errors import NoImageData, UpstreamFailure

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[a-zA-Z0-9_-]*[ \t]*\r?\n?")
_FENCE_CLOSE = re.compile(r"\r?\n?```\s*$")

DEFAULT_IMAGE_MIME = "image/png"


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any.

    Handles ```` ```json ```` and bare ```` ``` ```` openers.  Text without
    fences is returned trimmed but otherwise untouched.
    """
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = _FENCE_OPEN.sub("", stripped, count=1)
        stripped = _FENCE_CLOSE.sub("", stripped, count=1)
    return stripped.strip()


def extract_candidate_text(payload: dict[str, Any]) -> str:
    """Return ``candidates[0].content.parts[0].text`` from a text response.

    Raises:
        UpstreamFailure: If the path is missing or the text is empty.
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise UpstreamFailure(details=f"Unexpected provider response: missing {e}") from e

    if not isinstance(text, str) or not text.strip():
        raise UpstreamFailure(details="Provider returned an empty response")
    return text


def parse_design_result(text: str) -> DesignResult:
    """Parse the provider's embedded JSON into a :class:`DesignResult`.

    Args:
        text: Raw candidate text, optionally fenced.

    Raises:
        UpstreamFailure: If the text is not JSON or does not match the
            expected shape (for example, not exactly two variants).
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Provider returned invalid JSON: {e}")
        raise UpstreamFailure(details=f"Invalid JSON from provider: {e.msg}") from e

    try:
        return DesignResult.model_validate(data)
    except PydanticValidationError as e:
        logger.error(f"Provider JSON has unexpected shape: {e.error_count()} errors")
        raise UpstreamFailure(details="Provider response has an unexpected shape") from e


@dataclass(frozen=True)
class ImagePayload:
    """Image bytes extracted from a provider response.

    Attributes:
        data: Base64-encoded image bytes, as received.
        mime_type: MIME type reported by the provider (PNG if absent).
        shape: Which response shape the bytes were found in.
    """

    data: str
    mime_type: str = DEFAULT_IMAGE_MIME
    shape: Literal["predictions", "candidates"] = "predictions"

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def _decode_predictions(payload: dict[str, Any]) -> ImagePayload | None:
    predictions = payload.get("predictions")
    if not isinstance(predictions, list) or not predictions:
        return None
    first = predictions[0]
    if not isinstance(first, dict):
        return None
    data = first.get("bytesBase64Encoded")
    if not data:
        return None
    return ImagePayload(
        data=data,
        mime_type=first.get("mimeType") or DEFAULT_IMAGE_MIME,
        shape="predictions",
    )


def _decode_candidates(payload: dict[str, Any]) -> ImagePayload | None:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    content = (candidates[0] or {}).get("content") or {}
    for part in content.get("parts") or []:
        inline = part.get("inlineData") if isinstance(part, dict) else None
        if inline and inline.get("data"):
            return ImagePayload(
                data=inline["data"],
                mime_type=inline.get("mimeType") or DEFAULT_IMAGE_MIME,
                shape="candidates",
            )
    return None


def decode_image_payload(payload: dict[str, Any]) -> ImagePayload:
    """Extract image bytes from either supported response shape.

    Raises:
        NoImageData: If neither shape yields image bytes.
    """
    if not isinstance(payload, dict):
        raise NoImageData(details="Image response is not a JSON object")

    for decoder in (_decode_predictions, _decode_candidates):
        result = decoder(payload)
        if result is not None:
            return result

    raise NoImageData(details="No image data in provider response")
