"""Custom exception hierarchy for Town Chronicle.

All application exceptions inherit from :class:`ChronicleError`, which
carries an optional ``provider_name`` so error handlers can identify which
storage backend (e.g. "sqlite_town", "json_file_town") caused the failure.

The hierarchy is organized by the HTTP status the API layer maps it to:

    ChronicleError  (base -- catch-all for any chronicle error)
    +-- InvalidInputError        (400: empty author/content, bad name)
    +-- AuthenticationError      (401: missing or invalid bearer token)
    +-- PermissionDeniedError    (403: private town, guests disallowed)
    +-- TownNotFoundError        (404)
    +-- StoryNotFoundError       (404)
    +-- ConfigurationError       (startup / lexicon file problems)
    +-- StorageError             (persistence layer failure)

The core derivation functions (themes, sentiment, crest, motto, stats)
never raise any of these -- they are total over their inputs.  Only the
service and provider layers raise.
"""


class ChronicleError(Exception):
    """Base exception for all Town Chronicle errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``status_code`` is the HTTP status the API layer
    responds with when the error escapes a route handler.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request-level errors
# ---------------------------------------------------------------------------

class InvalidInputError(ChronicleError):
    """Raised when submitted fields are empty after trimming or out of range."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AuthenticationError(ChronicleError):
    """Raised when an operation requires an identity and none was supplied."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PermissionDeniedError(ChronicleError):
    """Raised when the caller is known but not allowed to act on a town."""

    status_code = 403

    def __init__(
        self,
        message: str = "Permission denied",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TownNotFoundError(ChronicleError):
    """Raised when a town id or share id does not resolve."""

    status_code = 404

    def __init__(
        self,
        message: str = "Town not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoryNotFoundError(ChronicleError):
    """Raised when a story id does not resolve."""

    status_code = 404

    def __init__(
        self,
        message: str = "Story not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------

class ConfigurationError(ChronicleError):
    """Raised when configuration (settings or lexicon data) is invalid."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(ChronicleError):
    """Raised when a persistence provider cannot read or write.

    The service layer lets this propagate so the request fails as a whole;
    derived town fields are never written from a partial story set.
    """

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
