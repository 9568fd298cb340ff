"""Import walk over an interchange document.

For every entry, in document order: look up the existing store document by
identifier value, decide create / update / skip / warn, rehydrate every
version and locale (relations, components, dynamic zones, media), and only
then write, published before draft. A record whose relations cannot be
resolved is reported as a single failure and nothing of it is written.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..exceptions import (
    ConfigurationError,
    MediaError,
    MissingRelationError,
    StoreError,
)
from ..identifiers import is_portable_identifier, resolve_identifier_field
from ..models.export_format import DEFAULT_LOCALE, EntryVersion
from ..models.options import ExistingAction
from ..models.results import ImportFailure, ImportResult
from ..models.schema import AttributeDescriptor, AttributeKind, ContentTypeSchema
from .relation_resolver import RelationResolver, find_in_store

if TYPE_CHECKING:
    from ..cache.schema_cache import InMemorySchemaCache
    from ..protocols import DocumentStore, Status
    from .import_context import ImportContext
    from .media_handler import MediaHandler

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]
VersionPlan = list[tuple["Status", list[tuple[str, dict[str, Any]]]]]


class _Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"
    WARN = "warn"


def _ordered_locales(versions: dict[str, dict[str, Any]]) -> list[str]:
    """Default locale first, then document order."""
    locales = list(versions)
    if DEFAULT_LOCALE in locales:
        locales.remove(DEFAULT_LOCALE)
        locales.insert(0, DEFAULT_LOCALE)
    return locales


def _store_locale(locale: str) -> str | None:
    return None if locale == DEFAULT_LOCALE else locale


class ImportProcessor:
    """Imports the entries of one interchange document into a store."""

    def __init__(
        self,
        context: ImportContext,
        store: DocumentStore,
        schemas: InMemorySchemaCache,
        media_handler: MediaHandler,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.context = context
        self.store = store
        self.schemas = schemas
        self.media_handler = media_handler
        self.progress_callback = progress_callback
        self.relations = RelationResolver(context, store, schemas, import_entry=self.import_entry)

    async def process(self) -> ImportResult:
        """Import every entry of the document.

        Returns:
            Counts of created, updated and skipped records plus failures

        Raises:
            ConfigurationError: If an identifier field is unusable
        """
        total = self.context.document.get_entry_count()
        done = 0

        for uid, entries in self.context.import_data.items():
            schema = await self.schemas.get_schema(uid)
            if schema is None:
                logger.error(f"Model {uid} not found")
                self.context.add_failure(f"Model {uid} not found", uid)
                done += len(entries)
                continue

            logger.debug(f"Importing {len(entries)} entries of {uid}")
            for entry in entries:
                await self.import_entry(uid, schema, entry)
                done += 1
                if self.progress_callback:
                    fraction = done / total if total else 1.0
                    self.progress_callback(fraction, f"Imported {done}/{total} entries")

        return ImportResult(
            created=self.context.created_count,
            updated=self.context.updated_count,
            skipped=self.context.skipped_count,
            failures=list(self.context.failures),
        )

    async def import_entry(
        self, uid: str, schema: ContentTypeSchema, entry: EntryVersion
    ) -> str | None:
        """Import one entry unless it was already imported in this run.

        Per-record problems become failures; only configuration errors raise.

        Returns:
            Store document identity of the record, or None if it failed
        """
        if not self.context.begin_entry(entry):
            return None

        try:
            return await self.process_entry(uid, schema, entry)
        except ConfigurationError:
            raise
        except MissingRelationError as e:
            logger.warning(f"Skipping {uid} entry: {e}")
            self.context.add_failure(
                e.message,
                entry.to_json_dict(),
                details={
                    "path": e.path,
                    "cause": "Missing Relation",
                    "target": e.target,
                    "value": e.value,
                },
            )
        except Exception as e:
            logger.error(f"Failed to import {uid} entry: {e}", exc_info=True)
            details = {"cause": type(e).__name__}
            if isinstance(e, StoreError) and e.details:
                details["store"] = e.details
            self.context.add_failure(
                str(e) or "Unknown error", entry.to_json_dict(), details=details
            )
        finally:
            self.context.end_entry(entry)
        return None

    async def process_entry(
        self, uid: str, schema: ContentTypeSchema, entry: EntryVersion
    ) -> str | None:
        """Import all versions and locales of one logical record.

        Raises:
            MissingRelationError: If a relation cannot be resolved
            StoreError: If the store rejects a read or write
        """
        statuses = entry.statuses()
        if not statuses:
            return None

        id_field = resolve_identifier_field(schema)
        id_values = self._identifier_values(schema, id_field, entry)
        primary_id = id_values[0] if id_values else None
        identities = self._identities(schema, id_values)

        document_id = None
        for value in identities:
            document_id = self.context.find_processed_record(uid, value)
            if document_id:
                break
        if document_id is None:
            document_id = await self._find_existing(uid, schema, id_field, primary_id)

        plan: VersionPlan = [
            (status, [(locale, versions[locale]) for locale in _ordered_locales(versions)])
            for status, versions in statuses
        ]

        if document_id is None:
            action = _Action.CREATE
        else:
            action = self._decide(document_id)

            if action is _Action.WARN:
                logger.warning(f"Entry already exists: {uid} {id_field}={primary_id!r}")
                self.context.add_failure(
                    f"Entry with {id_field}={primary_id} already exists",
                    entry.to_json_dict(),
                    details={"cause": "Entry Exists", "documentId": document_id},
                    warning=True,
                )
                self.context.record_skipped(uid, identities, document_id)
                return document_id

            if action is _Action.SKIP:
                if self.context.options.allow_locale_updates:
                    existing = await self._existing_locales(uid, document_id)
                    plan = [
                        (status, [(loc, data) for loc, data in items if loc not in existing])
                        for status, items in plan
                    ]
                    plan = [(status, items) for status, items in plan if items]
                else:
                    plan = []
                if not plan:
                    logger.info(f"Skipping existing entry {uid} {id_field}={primary_id!r}")
                    self.context.record_skipped(uid, identities, document_id)
                    return document_id
                logger.info(
                    f"Adding new locales to existing entry {uid} {id_field}={primary_id!r}"
                )

        allow_import = action is _Action.CREATE or not self.context.options.disallow_new_relations
        notes: list[ImportFailure] = []
        prepared: VersionPlan = []
        for status, items in plan:
            rehydrated = []
            for locale, data in items:
                path = [uid, status, locale]
                processed = await self._rehydrate(data, schema, path, notes, allow_import)
                rehydrated.append((locale, self._sanitize(processed, schema)))
            prepared.append((status, rehydrated))

        document_id = await self._write(uid, identities, document_id, prepared)
        self.context.failures.extend(notes)
        return document_id

    @staticmethod
    def _identities(schema: ContentTypeSchema, id_values: list[Any]) -> list[Any]:
        """Context keys of a record; a collection record without identifier value has none."""
        return [None] if schema.is_single_type else id_values

    def _identifier_values(
        self, schema: ContentTypeSchema, id_field: str, entry: EntryVersion
    ) -> list[Any]:
        if schema.is_single_type or not is_portable_identifier(id_field):
            return []
        values: list[Any] = []
        for _, versions in entry.statuses():
            record = versions.get(DEFAULT_LOCALE) or next(iter(versions.values()), {})
            value = record.get(id_field)
            if value is not None and value not in values:
                values.append(value)
        return values

    async def _find_existing(
        self, uid: str, schema: ContentTypeSchema, id_field: str, id_value: Any
    ) -> str | None:
        if schema.is_single_type:
            record = await self.store.find_first(uid)
            return record.get("documentId") if record else None
        if id_value is None:
            return None
        return await find_in_store(self.store, uid, id_field, id_value)

    def _decide(self, document_id: str) -> _Action:
        if self.context.was_written(document_id):
            return _Action.UPDATE
        existing_action = self.context.options.existing_action
        if existing_action is ExistingAction.UPDATE:
            return _Action.UPDATE
        if existing_action is ExistingAction.SKIP:
            return _Action.SKIP
        return _Action.WARN

    async def _existing_locales(self, uid: str, document_id: str) -> set[str]:
        """Locales present on either version of a document; the base one counts as default."""
        existing = {DEFAULT_LOCALE}
        for status in ("published", "draft"):
            version = await self.store.find_one(
                uid, document_id, status=status, populate={"localizations": True}
            )
            if not version:
                continue
            if version.get("locale"):
                existing.add(version["locale"])
            for localization in version.get("localizations") or []:
                if localization.get("locale"):
                    existing.add(localization["locale"])
        return existing

    async def _write(
        self,
        uid: str,
        identities: list[Any],
        document_id: str | None,
        prepared: VersionPlan,
    ) -> str | None:
        created = False
        for status, items in prepared:
            for locale, data in items:
                if document_id is None:
                    record = await self.store.create(
                        uid, data=data, status=status, locale=_store_locale(locale)
                    )
                    document_id = record["documentId"]
                    created = True
                    self.context.record_created(uid, identities, document_id)
                    logger.debug(f"Created {uid} {document_id} ({status}, {locale})")
                else:
                    await self.store.update(
                        uid, document_id, data=data, status=status, locale=_store_locale(locale)
                    )
                    logger.debug(f"Updated {uid} {document_id} ({status}, {locale})")

        if document_id is not None and not created:
            self.context.record_updated(uid, identities, document_id)
        return document_id

    async def _rehydrate(
        self,
        data: dict[str, Any],
        schema: ContentTypeSchema,
        path: list[str],
        notes: list[ImportFailure],
        allow_import: bool,
    ) -> dict[str, Any]:
        processed = {
            key: value for key, value in data.items() if key not in ("id", "localizations")
        }

        for attr in schema.attributes.values():
            value = data.get(attr.name)
            if value is None:
                continue
            attr_path = [*path, attr.name]

            if attr.kind is AttributeKind.SCALAR:
                continue
            elif attr.kind is AttributeKind.RELATION:
                processed[attr.name] = await self.relations.resolve(
                    value, attr, attr_path, allow_import=allow_import
                )
            elif attr.kind is AttributeKind.COMPONENT:
                processed[attr.name] = await self._rehydrate_component(
                    value, attr, attr_path, notes, allow_import
                )
            elif attr.kind is AttributeKind.DYNAMIC_ZONE:
                processed[attr.name] = await self._rehydrate_dynamic_zone(
                    value, attr_path, notes, allow_import
                )
            elif attr.kind is AttributeKind.MEDIA:
                processed[attr.name] = await self._rehydrate_media(value, attr, attr_path, notes)
            else:
                raise ValueError(f"Unhandled attribute kind: {attr.kind}")

        return processed

    async def _rehydrate_component(
        self,
        value: Any,
        attr: AttributeDescriptor,
        path: list[str],
        notes: list[ImportFailure],
        allow_import: bool,
    ) -> Any:
        component = await self.schemas.get_component_schema(attr.target) if attr.target else None
        if component is None:
            raise ValueError(f"Component {attr.target} not found")

        if attr.repeatable:
            items = value if isinstance(value, list) else [value]
            return [
                await self._rehydrate(item, component, [*path, str(index)], notes, allow_import)
                for index, item in enumerate(items)
                if isinstance(item, dict)
            ]
        if not isinstance(value, dict):
            raise ValueError(f"Expected an object for component {attr.name}")
        return await self._rehydrate(value, component, path, notes, allow_import)

    async def _rehydrate_dynamic_zone(
        self,
        value: Any,
        path: list[str],
        notes: list[ImportFailure],
        allow_import: bool,
    ) -> list[dict[str, Any]]:
        if not isinstance(value, list):
            raise ValueError("Dynamic zone must be an array")

        items: list[dict[str, Any]] = []
        for index, item in enumerate(value):
            component_uid = item.get("__component") if isinstance(item, dict) else None
            component = (
                await self.schemas.get_component_schema(component_uid) if component_uid else None
            )
            if component is None:
                logger.warning(f"Dropping dynamic zone item with unknown component {component_uid}")
                continue
            rehydrated = await self._rehydrate(
                item, component, [*path, str(index)], notes, allow_import
            )
            items.append({**rehydrated, "__component": component_uid})
        return items

    async def _rehydrate_media(
        self,
        value: Any,
        attr: AttributeDescriptor,
        path: list[str],
        notes: list[ImportFailure],
    ) -> Any:
        if attr.is_many:
            items = value if isinstance(value, list) else [value]
            file_ids = []
            for item in items:
                file_id = await self._import_media(item, attr, path, notes)
                if file_id is not None:
                    file_ids.append(file_id)
            return file_ids
        if isinstance(value, list):
            value = value[0] if value else None
        if value is None:
            return None
        return await self._import_media(value, attr, path, notes)

    async def _import_media(
        self,
        item: Any,
        attr: AttributeDescriptor,
        path: list[str],
        notes: list[ImportFailure],
    ) -> Any:
        try:
            file = await self.media_handler.find_or_import(item, attr.allowed_types)
        except (MediaError, StoreError, ValueError) as e:
            logger.warning(f"Failed to import media at {'.'.join(path)}: {e}")
            notes.append(
                ImportFailure(
                    error=f"Failed to import media: {e}",
                    data=item,
                    details={"path": ".".join(path), "cause": "Media Error"},
                )
            )
            return None

        if file is None:
            logger.warning(f"No usable media file for {'.'.join(path)}")
            return None
        return file.get("id")

    def _sanitize(self, data: dict[str, Any], schema: ContentTypeSchema) -> dict[str, Any]:
        """Keep only configurable schema attributes."""
        allowed = {attr.name for attr in schema.attributes.values() if attr.configurable}
        removed = [key for key in data if key not in allowed]
        if removed:
            logger.debug(f"Removing fields not in {schema.uid}: {removed}")
        return {key: value for key, value in data.items() if key in allowed}
