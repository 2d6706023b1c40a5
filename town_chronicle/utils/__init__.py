"""Utility modules for Town Chronicle.

- **errors** -- Domain-specific exception hierarchy rooted at ChronicleError;
  each subclass carries the HTTP status the API layer maps it to.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from town_chronicle.utils.errors import (
    AuthenticationError,
    ChronicleError,
    ConfigurationError,
    InvalidInputError,
    PermissionDeniedError,
    StorageError,
    StoryNotFoundError,
    TownNotFoundError,
)
from town_chronicle.utils.logging import configure_logging, get_logger

__all__ = [
    "AuthenticationError",
    "ChronicleError",
    "ConfigurationError",
    "InvalidInputError",
    "PermissionDeniedError",
    "StorageError",
    "StoryNotFoundError",
    "TownNotFoundError",
    "configure_logging",
    "get_logger",
]
