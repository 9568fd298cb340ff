"""Exception hierarchy for strapi-transfer.

Three families matter to callers of the export/import engine:

- ConfigurationError: identifier field or settings are unusable. Raised before
  any write so callers can report a precondition failure.
- ImportExportError: a run-level failure of an export or import (bad payload
  format, unreadable file). Per-record problems are never raised; they are
  collected as ``ImportFailure`` values.
- StoreError: the content store rejected or could not serve a request.

ImportInProgressError is the single-flight conflict signal and is neither a
configuration nor a data problem.
"""

from typing import Any


class StrapiTransferError(Exception):
    """Base exception for all strapi-transfer errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# Configuration


class ConfigurationError(StrapiTransferError):
    """Invalid settings or identifier field configuration."""

    cause = "Configuration Error"


class IdFieldNotFoundError(ConfigurationError):
    """The identifier field is not an attribute of the content type."""

    cause = "IdField Not Found"


class IdFieldMisconfiguredError(ConfigurationError):
    """The identifier field exists but cannot guarantee uniqueness."""

    cause = "IdField Configuration Error"


# Export / import


class ImportExportError(StrapiTransferError):
    """Export or import run failed as a whole."""


class FormatError(ImportExportError):
    """Payload is not a readable interchange document."""


class MissingRelationError(ImportExportError):
    """A relation value could not be resolved to a store document."""

    def __init__(
        self,
        message: str,
        *,
        target: str,
        value: Any,
        path: str | None = None,
    ) -> None:
        super().__init__(message, details={"target": target, "value": value, "path": path})
        self.target = target
        self.value = value
        self.path = path


class MediaError(ImportExportError):
    """Media could not be found, fetched or uploaded."""


class ImportInProgressError(StrapiTransferError):
    """Another import is already running in this process."""


# Store


class StoreError(StrapiTransferError):
    """The content store failed to serve a request."""


class AuthenticationError(StoreError):
    """Authentication failed (HTTP 401)."""


class AuthorizationError(StoreError):
    """Permission denied (HTTP 403)."""


class NotFoundError(StoreError):
    """Resource not found (HTTP 404)."""


class ValidationError(StoreError):
    """Store rejected the payload (HTTP 400)."""


class ConflictError(StoreError):
    """Store reported a conflict (HTTP 409)."""


class RateLimitError(StoreError):
    """Rate limit exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.retry_after = retry_after


class ServerError(StoreError):
    """Store-side failure (HTTP 5xx)."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class NetworkError(StoreError):
    """Transport-level failure: connection refused, reset or timed out."""
