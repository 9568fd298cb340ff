"""Per content type export walk.

Reads draft records, pairs each with its published counterpart, and
flattens both through the content type schema: store-internal fields are
dropped, relations become identifier values, components and dynamic zones
are flattened recursively and media become URL plus metadata.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..exceptions import ConfigurationError
from ..identifiers import (
    is_portable_identifier,
    resolve_identifier_field,
    validate_identifier_field,
)
from ..models.export_format import DEFAULT_LOCALE, EntryVersion
from ..models.schema import AttributeDescriptor, AttributeKind, ContentTypeSchema
from ..utils.uid import ADMIN_USER_UID, MEDIA_FILE_UID
from .media_handler import MediaHandler
from .populate import build_populate

if TYPE_CHECKING:
    from ..cache.schema_cache import InMemorySchemaCache
    from ..protocols import DocumentStore
    from .export_context import ExportContext

logger = logging.getLogger(__name__)

STRIPPED_FIELDS = ("id", "documentId", "createdBy", "updatedBy", "localizations")


def versions_equal(
    first: dict[str, Any], second: dict[str, Any], exclude: tuple[str, ...] = ("publishedAt",)
) -> bool:
    """Compare two flattened records, ignoring top-level ``exclude`` fields."""
    left = {key: value for key, value in first.items() if key not in exclude}
    right = {key: value for key, value in second.items() if key not in exclude}
    return left == right


class ExportProcessor:
    """Exports the records of one content type at a time into an ExportContext."""

    def __init__(
        self,
        context: ExportContext,
        store: DocumentStore,
        schemas: InMemorySchemaCache,
        public_hostname: str,
    ) -> None:
        self.context = context
        self.store = store
        self.schemas = schemas
        self.public_hostname = public_hostname

    async def process_content_type(self, uid: str) -> None:
        """Export every matching record of ``uid`` into the context.

        Raises:
            ConfigurationError: If the identifier field of ``uid`` is unusable
        """
        schema = await self.schemas.get_schema(uid)
        if schema is None or uid == ADMIN_USER_UID:
            logger.debug(f"Skipping model {uid}")
            return

        if not schema.is_single_type and uid != MEDIA_FILE_UID:
            try:
                validate_identifier_field(schema)
            except ConfigurationError as e:
                logger.error(f"ID field validation failed for {uid}: {e}")
                raise

        populate = await build_populate(uid, self.schemas)
        if self.context.options.export_all_locales and schema.localized:
            populate = {**populate, "localizations": {"populate": populate}}

        search = self.context.search_params()
        filters: dict[str, Any] = dict(search.get("filters") or {})
        if self.context.document_ids:
            filters["documentId"] = {"$in": list(self.context.document_ids)}

        self.context.exported_data.setdefault(uid, [])

        drafts = await self.store.find_many(
            uid,
            filters=filters or None,
            sort=search.get("sort"),
            status="draft",
            populate=populate,
        )
        logger.debug(f"Found {len(drafts)} draft entries for {uid}")

        for draft in drafts:
            document_id = draft.get("documentId")
            if document_id and self.context.was_processed(uid, document_id):
                continue
            await self._process_entry(uid, schema, draft, populate)

    async def _process_entry(
        self,
        uid: str,
        schema: ContentTypeSchema,
        draft: dict[str, Any],
        populate: dict[str, Any],
    ) -> None:
        document_id = draft.get("documentId")
        published = None
        if document_id:
            published = await self.store.find_one(
                uid, document_id, status="published", populate=populate
            )

        versions = await self._group_by_locale(draft, published, schema)
        if versions.draft or versions.published:
            self.context.add_entry(uid, versions)
            if document_id:
                self.context.record_processed(uid, document_id)

    async def _flatten_entry(
        self, data: dict[str, Any], schema: ContentTypeSchema
    ) -> dict[str, Any]:
        return await self._flatten(data, schema, skip_relations=self.context.skip_relations)

    async def _group_by_locale(
        self,
        draft: dict[str, Any],
        published: dict[str, Any] | None,
        schema: ContentTypeSchema,
    ) -> EntryVersion:
        """Build the entry version; a draft is kept only where it differs."""
        draft_versions: dict[str, dict[str, Any]] = {}
        published_versions: dict[str, dict[str, Any]] = {}
        all_locales = self.context.options.export_all_locales

        draft_data = await self._flatten_entry(draft, schema)
        published_data = await self._flatten_entry(published, schema) if published else None
        if published_data is None or not versions_equal(draft_data, published_data):
            draft_versions[DEFAULT_LOCALE] = draft_data

        published_localizations = {
            loc.get("locale"): loc for loc in (published or {}).get("localizations") or []
        }

        if all_locales:
            for localization in draft.get("localizations") or []:
                locale = localization.get("locale")
                if not locale:
                    continue
                loc_data = await self._flatten_entry(localization, schema)
                published_loc = published_localizations.get(locale)
                published_loc_data = (
                    await self._flatten_entry(published_loc, schema) if published_loc else None
                )
                if published_loc_data is None or not versions_equal(loc_data, published_loc_data):
                    draft_versions[locale] = loc_data

        if published_data is not None:
            published_versions[DEFAULT_LOCALE] = published_data
            if all_locales:
                for locale, localization in published_localizations.items():
                    if locale:
                        published_versions[locale] = await self._flatten_entry(localization, schema)

        return EntryVersion(
            draft=draft_versions or None,
            published=published_versions or None,
        )

    async def _flatten(
        self,
        data: dict[str, Any],
        schema: ContentTypeSchema,
        *,
        skip_relations: bool,
    ) -> dict[str, Any]:
        """Flatten one record or component instance.

        A failure while flattening an attribute is logged and leaves that
        attribute null.
        """
        processed = {key: value for key, value in data.items() if key not in STRIPPED_FIELDS}

        for attr in schema.attributes.values():
            if attr.kind is AttributeKind.RELATION and attr.target == ADMIN_USER_UID:
                processed[attr.name] = [] if attr.is_many else None
                continue
            value = data.get(attr.name)
            if value is None or attr.name == "localizations":
                continue
            try:
                processed[attr.name] = await self._flatten_attribute(value, attr, skip_relations)
            except Exception:
                logger.warning(
                    f"Failed to process attribute {attr.name} of {schema.uid}", exc_info=True
                )
                processed[attr.name] = None

        return processed

    async def _flatten_attribute(
        self, value: Any, attr: AttributeDescriptor, skip_relations: bool
    ) -> Any:
        if attr.kind is AttributeKind.SCALAR:
            return value
        elif attr.kind is AttributeKind.RELATION:
            return await self._flatten_relation(value, attr, skip_relations)
        elif attr.kind is AttributeKind.COMPONENT:
            return await self._flatten_component(value, attr)
        elif attr.kind is AttributeKind.DYNAMIC_ZONE:
            return await self._flatten_dynamic_zone(value)
        elif attr.kind is AttributeKind.MEDIA:
            return self._flatten_media(value, attr)
        raise ValueError(f"Unhandled attribute kind: {attr.kind}")

    async def _flatten_relation(
        self, value: Any, attr: AttributeDescriptor, skip_relations: bool
    ) -> Any:
        empty: Any = [] if attr.is_many else None
        if not attr.target or attr.target == ADMIN_USER_UID:
            return empty

        target_schema = await self.schemas.get_schema(attr.target)
        if target_schema is None:
            return empty

        id_field = resolve_identifier_field(target_schema)
        if not is_portable_identifier(id_field):
            logger.debug(
                f"Relation target {attr.target} has no portable identifier, exporting null"
            )
            return empty

        if attr.is_many:
            if not isinstance(value, list):
                logger.warning(f"Expected array for many relation to {attr.target}")
                return []
            return [
                self._relation_value(item, attr.target, id_field, skip_relations)
                for item in value
                if isinstance(item, dict)
            ]

        if isinstance(value, list):
            logger.warning(f"Expected single item for one relation to {attr.target}")
            return None
        return self._relation_value(value, attr.target, id_field, skip_relations)

    def _relation_value(
        self, item: dict[str, Any], target: str, id_field: str, skip_relations: bool
    ) -> Any:
        document_id = item.get("documentId")
        if (
            not skip_relations
            and document_id
            and not self.context.was_processed(target, document_id)
        ):
            self.context.add_relation(target, document_id)
        return item.get(id_field)

    async def _flatten_component(self, value: Any, attr: AttributeDescriptor) -> Any:
        component = await self.schemas.get_component_schema(attr.target) if attr.target else None
        if component is None:
            return None

        skip = self.context.skip_component_relations
        if attr.repeatable:
            if not isinstance(value, list):
                return []
            return [await self._flatten(item, component, skip_relations=skip) for item in value]
        return await self._flatten(value, component, skip_relations=skip)

    async def _flatten_dynamic_zone(self, value: Any) -> list[dict[str, Any]]:
        if not isinstance(value, list):
            return []

        items: list[dict[str, Any]] = []
        for item in value:
            component_uid = item.get("__component") if isinstance(item, dict) else None
            component = (
                await self.schemas.get_component_schema(component_uid) if component_uid else None
            )
            if component is None:
                continue
            flattened = await self._flatten(
                item, component, skip_relations=self.context.skip_component_relations
            )
            items.append({"__component": component_uid, **flattened})
        return items

    def _flatten_media(self, value: Any, attr: AttributeDescriptor) -> Any:
        if attr.is_many:
            if not isinstance(value, list):
                return []
            return [MediaHandler.flatten(item, self.public_hostname) for item in value]
        return MediaHandler.flatten(value, self.public_hostname)
