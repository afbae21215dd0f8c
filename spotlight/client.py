"""
client.py — Gemini client for the sign spotlight edit.

One request per call:
  parts[0]  inline image data (the user's photo)
  parts[1]  SPOTLIGHT_PROMPT (fixed instruction)

The response is restricted to IMAGE output. The first candidate part that
carries inline data is the result; if there is none, process() returns None
and the caller decides what to tell the user.

No retries and no model ladder: one attempt, failures propagate as
RemoteProcessingError.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from .errors import RemoteProcessingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred while communicating with the Gemini API."

SPOTLIGHT_PROMPT = """\
Analyze the provided image. Detect the main sign (it can be a logo, lettering, or an illuminated panel).
Edit the image as follows:
1. Keep the detected sign in its original colors, perfectly preserving saturation, brightness and detail.
2. Convert everything else in the image (the background and all other elements) to a neutral grayscale (black and white).
3. Make the edges between the colored sign and the black-and-white background extremely precise and sharp, with no halos or feathering.
4. The black-and-white background must have balanced contrast, with deep blacks.
5. The colored sign must stand out vividly, as if it were the only element in focus.
6. Preserve the proportions, perspective and original lighting of the whole photo.
The final result must be a single image. Do not respond with text, only with the edited image."""


def extract_first_image(response: Any) -> Optional[bytes]:
    """
    Return the payload of the first inline-data part of the first candidate.

    The SDK normally hands back raw bytes; string payloads are base64 text and
    are decoded. Returns None when no part carries inline data, or when the
    first one that does is empty.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is None:
            continue
        # First inline part decides, even when it carries no bytes.
        data = inline.data
        if isinstance(data, str):
            data = base64.b64decode(data)
        return data or None
    return None


class SpotlightClient:
    """Sends a photo + the spotlight instruction to a Gemini image model."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.model = model
        self._client = client if client is not None else genai.Client(api_key=api_key)

    def build_contents(self, data: str, media_type: str) -> list:
        # The SDK takes raw bytes and does its own base64 on the wire.
        return [
            types.Part.from_bytes(data=base64.b64decode(data), mime_type=media_type),
            types.Part.from_text(text=SPOTLIGHT_PROMPT),
        ]

    async def process(self, data: str, media_type: str) -> Optional[bytes]:
        """
        Run the spotlight edit on one base64-encoded image.

        Args:
            data:        base64 text of the source image
            media_type:  declared media type of the source (image/png, ...)

        Returns:
            Raw bytes of the generated image, or None if the model answered
            without any image part.

        Raises:
            RemoteProcessingError on any transport, service or response failure.
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=self.build_contents(data, media_type),
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE"],
                ),
            )
            image = extract_first_image(response)
        except Exception as e:
            logger.error("Error processing image with Gemini: %s", e, exc_info=True)
            message = str(e)
            if message:
                raise RemoteProcessingError(f"Gemini API Error: {message}") from e
            raise RemoteProcessingError(UNKNOWN_ERROR_MESSAGE) from e

        if image is None:
            logger.warning("Gemini (%s) returned no image part", self.model)
        else:
            logger.info("Gemini (%s) returned %d bytes", self.model, len(image))
        return image
