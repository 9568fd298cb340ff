"""strapi-transfer: move Strapi content between environments.

This package provides an export/import reconciliation engine for Strapi v5:
- Export of content types, locales and draft/published versions to a
  portable interchange document
- Breadth-first relation traversal with a depth limit
- Import matched by a natural identifier field instead of surrogate ids
- Media reuse by hash and name, with fetch-and-upload as a fallback
- Background imports with a single-subscriber progress channel
"""

from .__version__ import __version__
from .cache import InMemorySchemaCache
from .client import StrapiRestStore
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    FormatError,
    IdFieldMisconfiguredError,
    IdFieldNotFoundError,
    ImportExportError,
    ImportInProgressError,
    MediaError,
    MissingRelationError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    StoreError,
    StrapiTransferError,
    ValidationError,
)
from .export import ContentExporter, ImportService, ProgressChannel
from .identifiers import resolve_identifier_field, validate_identifier_field
from .models import (
    ConfigFactory,
    ExistingAction,
    ExportOptions,
    ImportFailure,
    ImportOptions,
    ImportResult,
    ImportStarted,
    InterchangeDocument,
    RetryConfig,
    TransferConfig,
)
from .protocols import DocumentStore, MediaStore, SchemaSource

__all__ = [
    "__version__",
    # Store
    "StrapiRestStore",
    "InMemorySchemaCache",
    # Configuration
    "TransferConfig",
    "RetryConfig",
    "ConfigFactory",
    # Export/Import
    "ContentExporter",
    "ImportService",
    "ProgressChannel",
    "ExportOptions",
    "ImportOptions",
    "ExistingAction",
    "InterchangeDocument",
    "ImportResult",
    "ImportStarted",
    "ImportFailure",
    # Identifiers
    "resolve_identifier_field",
    "validate_identifier_field",
    # Protocols
    "DocumentStore",
    "MediaStore",
    "SchemaSource",
    # Exceptions
    "StrapiTransferError",
    "ConfigurationError",
    "IdFieldNotFoundError",
    "IdFieldMisconfiguredError",
    "ImportExportError",
    "FormatError",
    "MissingRelationError",
    "MediaError",
    "ImportInProgressError",
    "StoreError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "RateLimitError",
    "ServerError",
    "NetworkError",
]
