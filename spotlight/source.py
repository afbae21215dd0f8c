"""
source.py — Source images, processed results, and selection rules.

A SourceImage is what the user picked; a ProcessedResult is what came back
from Gemini, re-tagged with the source's media type for display / download.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SUPPORTED_MEDIA_TYPES = ("image/png", "image/jpeg", "image/webp")

# Gemini inline data limit
MAX_SOURCE_BYTES = 4 * 1024 * 1024

DOWNLOAD_SUFFIX = "_spotlight.png"
DEFAULT_DOWNLOAD_NAME = "processed_image.png"

TOO_LARGE_MESSAGE = "File is too large. Please upload an image under 4MB."
UNSUPPORTED_MESSAGE = "Unsupported file type. Please upload a PNG, JPG or WEBP image."

_EXTENSION_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class SourceImage:
    name: str
    media_type: str
    size: int
    path: Path


@dataclass(frozen=True)
class ProcessedResult:
    data: bytes
    media_type: str

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.base64_data}"


def guess_media_type(filename: str) -> Optional[str]:
    """Media type from the file extension, or None if it isn't one we accept."""
    return _EXTENSION_TYPES.get(Path(filename).suffix.lower())


def validate_source(name: str, media_type: Optional[str], size: int) -> Optional[str]:
    """
    Check a candidate source before anything is read or sent.

    Returns the user-facing error message, or None when the source is usable.
    The size cap is checked first.
    """
    if size > MAX_SOURCE_BYTES:
        return TOO_LARGE_MESSAGE
    if media_type not in SUPPORTED_MEDIA_TYPES:
        return UNSUPPORTED_MESSAGE
    return None


def download_name(source_name: Optional[str]) -> str:
    """photo.jpg → photo_spotlight.png"""
    if not source_name:
        return DEFAULT_DOWNLOAD_NAME
    base, dot, _ext = source_name.rpartition(".")
    if not dot:
        base = source_name
    return f"{base}{DOWNLOAD_SUFFIX}"
