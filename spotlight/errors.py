"""
errors.py — Exceptions raised by the spotlight core.
"""

from __future__ import annotations


class SpotlightError(Exception):
    """Base class for all spotlight failures."""


class ConfigError(SpotlightError):
    """Required configuration is missing. Fatal at startup."""


class ReadError(SpotlightError):
    """The source image could not be read for encoding."""


class RemoteProcessingError(SpotlightError):
    """The Gemini call failed (transport, service or malformed response)."""
