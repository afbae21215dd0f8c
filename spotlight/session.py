"""
session.py — One user's spotlight session.

State flow:
  Idle ──select──▶ Ready ──process──▶ Processing ──▶ Succeeded | Failed
                     ▲                                      │
                     └──────────────── select ◀─────────────┘

A selection that fails validation produces Rejected(previous, message): the
error is shown but the previous preview/result is kept. Rejected is not
Ready, so nothing can be processed from it.

Each transition replaces `state` with a new frozen value. At most one
request is in flight per session; a newer selection made while a request is
running makes that request's outcome stale and it is dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from .client import SpotlightClient
from .encoder import EncodedImage, encode_source
from .source import ProcessedResult, SourceImage, download_name, validate_source

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = (
    "The AI model did not return an image. Please try again with a different image."
)
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


# ── States ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Ready:
    source: SourceImage


@dataclass(frozen=True)
class Processing:
    source: SourceImage


@dataclass(frozen=True)
class Succeeded:
    source: SourceImage
    result: ProcessedResult

    @property
    def download_name(self) -> str:
        return download_name(self.source.name)


@dataclass(frozen=True)
class Failed:
    source: SourceImage
    message: str


@dataclass(frozen=True)
class Rejected:
    previous: "BaseState"
    message: str


BaseState = Union[Idle, Ready, Processing, Succeeded, Failed]
SessionState = Union[BaseState, Rejected]

Encode = Callable[[SourceImage], Awaitable[EncodedImage]]


def _unwrap(state: SessionState) -> BaseState:
    return state.previous if isinstance(state, Rejected) else state


# ── Session ───────────────────────────────────────────────────────────────────

class SpotlightSession:
    """Holds the current state for one user and drives transitions."""

    def __init__(self, client: SpotlightClient, encode: Encode = encode_source) -> None:
        self.client = client
        self._encode = encode
        self.state: SessionState = Idle()
        self._in_flight: Optional[SourceImage] = None

    @property
    def is_loading(self) -> bool:
        return self._in_flight is not None

    @property
    def in_flight(self) -> Optional[SourceImage]:
        """Source of the request currently running, if any."""
        return self._in_flight

    @property
    def source(self) -> Optional[SourceImage]:
        return getattr(_unwrap(self.state), "source", None)

    @property
    def error(self) -> Optional[str]:
        if isinstance(self.state, (Failed, Rejected)):
            return self.state.message
        return None

    @property
    def can_process(self) -> bool:
        return isinstance(self.state, Ready) and not self.is_loading

    def select(self, name: str, media_type: Optional[str], size: int, path: Path) -> SessionState:
        """Pick a new source. Valid → Ready; invalid → Rejected, rest untouched."""
        message = validate_source(name, media_type, size)
        if message:
            logger.info("Rejected %s (%s, %d bytes): %s", name, media_type, size, message)
            return self.reject(message)
        self.state = Ready(SourceImage(name=name, media_type=media_type, size=size, path=path))
        logger.debug("Selected %s (%s, %d bytes)", name, media_type, size)
        return self.state

    def reject(self, message: str) -> SessionState:
        """Show a validation error; the current source/result stays as it is."""
        self.state = Rejected(previous=_unwrap(self.state), message=message)
        return self.state

    def reset(self) -> SessionState:
        self.state = Idle()
        return self.state

    async def process(self) -> SessionState:
        """
        Run the spotlight edit on the current source.

        No-op unless the session is Ready with nothing in flight. Encoding
        always finishes before the request is issued. Whatever happens, the
        in-flight marker is cleared on the way out.
        """
        if not self.can_process:
            logger.debug("process() ignored in %s (loading=%s)", type(self.state).__name__, self.is_loading)
            return self.state

        source = self.state.source
        self._in_flight = source
        self.state = Processing(source)
        try:
            outcome = await self._run(source)
        finally:
            self._in_flight = None

        # A newer selection replaced this source while we were waiting.
        if self.source is not source:
            logger.info("Dropping stale result for %s", source.name)
            return self.state

        self.state = outcome
        return self.state

    async def _run(self, source: SourceImage) -> BaseState:
        try:
            encoded = await self._encode(source)
            payload = await self.client.process(encoded.data, encoded.media_type)
        except Exception as e:
            logger.warning("Processing %s failed: %s", source.name, e)
            return Failed(source, str(e) or UNKNOWN_ERROR_MESSAGE)

        if payload is None:
            return Failed(source, NO_IMAGE_MESSAGE)
        return Succeeded(source, ProcessedResult(data=payload, media_type=source.media_type))
