"""
encoder.py — Turns a selected source image into base64 text for the request.

Pure byte → text re-encoding. The file is read in the default executor so
the event loop (and the Telegram bot) stays responsive.
"""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass

from .errors import ReadError
from .source import SourceImage


@dataclass(frozen=True)
class EncodedImage:
    data: str          # base64 text
    media_type: str


async def encode_source(source: SourceImage) -> EncodedImage:
    loop = asyncio.get_event_loop()
    try:
        raw = await loop.run_in_executor(None, source.path.read_bytes)
    except OSError as e:
        raise ReadError(f"Could not read {source.name}: {e.strerror or e}") from e
    return EncodedImage(
        data=base64.b64encode(raw).decode("ascii"),
        media_type=source.media_type,
    )
