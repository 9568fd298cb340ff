"""Relation rehydration for import.

An exported relation holds the target's identifier value. It is resolved to
a store document identity by looking, in order, at records handled earlier in
this run, at the target's entry in the document being imported (imported on
demand when allowed), and finally at the store.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ..exceptions import MissingRelationError
from ..identifiers import resolve_identifier_field
from ..models.export_format import EntryVersion
from ..models.schema import AttributeDescriptor, ContentTypeSchema
from ..utils.uid import ADMIN_USER_UID

if TYPE_CHECKING:
    from ..cache.schema_cache import InMemorySchemaCache
    from ..protocols import DocumentStore
    from .import_context import ImportContext

logger = logging.getLogger(__name__)

ImportEntryFn = Callable[[str, ContentTypeSchema, EntryVersion], Awaitable[str | None]]


async def find_in_store(
    store: DocumentStore, uid: str, id_field: str, id_value: Any
) -> str | None:
    """Find the document identity of a record by identifier value.

    Published records win over drafts when both exist with different
    identities.
    """
    filters = {id_field: {"$eq": id_value}}
    published = await store.find_first(uid, filters=filters, status="published")
    draft = await store.find_first(uid, filters=filters, status="draft")

    if published and draft and published.get("documentId") != draft.get("documentId"):
        logger.warning(
            f"Found conflicting published and draft versions of {uid} {id_field}={id_value!r}: "
            f"{published.get('documentId')} / {draft.get('documentId')}"
        )
    record = published or draft
    if record is None:
        logger.debug(f"Record not found in store: {uid} {id_field}={id_value!r}")
        return None
    return record.get("documentId")


class RelationResolver:
    """Resolves exported relation values to store document identities."""

    def __init__(
        self,
        context: ImportContext,
        store: DocumentStore,
        schemas: InMemorySchemaCache,
        import_entry: ImportEntryFn | None = None,
    ) -> None:
        self.context = context
        self.store = store
        self.schemas = schemas
        self.import_entry = import_entry

    async def resolve(
        self,
        value: Any,
        attr: AttributeDescriptor,
        path: list[str],
        *,
        allow_import: bool = False,
    ) -> Any:
        """Resolve a relation attribute value.

        Args:
            value: Identifier value, or a list of them for many relations
            attr: Relation attribute
            path: Location of the attribute, for failure reporting
            allow_import: Import targets found in the document on demand

        Returns:
            Document identity, a list of them, or None / [] when empty

        Raises:
            MissingRelationError: If a value cannot be resolved and missing
                relations are not ignored
        """
        if attr.is_many:
            values = value if isinstance(value, list) else [value]
            resolved = []
            for item in values:
                document_id = await self._resolve_one(item, attr, path, allow_import)
                if document_id is not None:
                    resolved.append(document_id)
            return resolved

        if isinstance(value, list):
            value = value[0] if value else None
        return await self._resolve_one(value, attr, path, allow_import)

    async def _resolve_one(
        self, value: Any, attr: AttributeDescriptor, path: list[str], allow_import: bool
    ) -> str | None:
        if value is None or value == "":
            return None
        if not attr.target or attr.target == ADMIN_USER_UID:
            return None

        target_schema = await self.schemas.get_schema(attr.target)
        if target_schema is None:
            return self._missing(f"Target model {attr.target} not found", attr, value, path)

        id_field = resolve_identifier_field(target_schema)

        document_id = self.context.find_processed_record(attr.target, value)
        if document_id:
            logger.debug(f"Found previously processed relation {attr.target}:{value}")
            return document_id

        if allow_import and self.import_entry is not None:
            entry = self.find_entry_in_document(attr.target, id_field, value)
            if entry is not None and not self.context.is_entry_in_progress(entry):
                logger.debug(f"Importing related entry from document: {attr.target}:{value}")
                document_id = await self.import_entry(attr.target, target_schema, entry)
                if document_id:
                    return document_id

        document_id = await find_in_store(self.store, attr.target, id_field, value)
        if document_id:
            return document_id

        return self._missing(
            f"Related entity with {id_field}='{value}' not found in {attr.target}",
            attr,
            value,
            path,
        )

    def _missing(
        self, message: str, attr: AttributeDescriptor, value: Any, path: list[str]
    ) -> None:
        if self.context.options.ignore_missing_relations:
            logger.warning(f"{message}; leaving relation {'.'.join(path)} empty")
            return None
        raise MissingRelationError(
            message, target=attr.target or "", value=value, path=".".join(path)
        )

    def find_entry_in_document(self, uid: str, id_field: str, value: Any) -> EntryVersion | None:
        """Find the entry of ``uid`` whose draft or published records carry ``value``."""
        for entry in self.context.import_data.get(uid, []):
            if entry.matches(id_field, value):
                return entry
        return None
