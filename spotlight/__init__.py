"""Sign Spotlight — keep the sign in colour, turn the rest of the photo grayscale."""

from .client import DEFAULT_MODEL, SPOTLIGHT_PROMPT, SpotlightClient
from .config import Settings
from .errors import ConfigError, ReadError, RemoteProcessingError, SpotlightError
from .session import SpotlightSession

__all__ = [
    "DEFAULT_MODEL",
    "SPOTLIGHT_PROMPT",
    "ConfigError",
    "ReadError",
    "RemoteProcessingError",
    "Settings",
    "SpotlightClient",
    "SpotlightError",
    "SpotlightSession",
]
