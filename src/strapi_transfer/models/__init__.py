"""Data models for strapi-transfer."""

from .config import ConfigFactory, RetryConfig, TransferConfig
from .export_format import (
    DEFAULT_LOCALE,
    FORMAT_VERSION,
    EntryVersion,
    InterchangeDocument,
    LocaleVersions,
)
from .options import MEDIA_SELECTOR, WHOLE_STORE, ExistingAction, ExportOptions, ImportOptions
from .results import ImportFailure, ImportResult, ImportStarted, ImportValidationError
from .schema import (
    AttributeDescriptor,
    AttributeKind,
    Cardinality,
    ContentTypeInfo,
    ContentTypeSchema,
)
from .status import ImportPhase, ImportStatus, ProgressEvent

__all__ = [
    # Configuration
    "TransferConfig",
    "RetryConfig",
    "ConfigFactory",
    # Schema
    "AttributeDescriptor",
    "AttributeKind",
    "Cardinality",
    "ContentTypeInfo",
    "ContentTypeSchema",
    # Interchange format
    "DEFAULT_LOCALE",
    "FORMAT_VERSION",
    "EntryVersion",
    "InterchangeDocument",
    "LocaleVersions",
    # Options
    "WHOLE_STORE",
    "MEDIA_SELECTOR",
    "ExistingAction",
    "ExportOptions",
    "ImportOptions",
    # Results
    "ImportFailure",
    "ImportResult",
    "ImportStarted",
    "ImportValidationError",
    # Status
    "ImportPhase",
    "ImportStatus",
    "ProgressEvent",
]
