"""Export and import engine for Strapi content.

Exports walk content types into a version 3 interchange document; imports
reconcile such a document with a store by natural identifier field.
"""

from strapi_transfer.export.export_context import ExportContext
from strapi_transfer.export.export_processor import ExportProcessor
from strapi_transfer.export.exporter import ContentExporter
from strapi_transfer.export.import_context import ImportContext
from strapi_transfer.export.import_processor import ImportProcessor
from strapi_transfer.export.importer import ImportService
from strapi_transfer.export.media_handler import MediaHandler
from strapi_transfer.export.progress import ProgressChannel, ProgressSubscription
from strapi_transfer.export.relation_resolver import RelationResolver
from strapi_transfer.export.validation import validate_document

__all__ = [
    "ContentExporter",
    "ExportContext",
    "ExportProcessor",
    "ImportContext",
    "ImportProcessor",
    "ImportService",
    "MediaHandler",
    "ProgressChannel",
    "ProgressSubscription",
    "RelationResolver",
    "validate_document",
]
