"""Structural validation of interchange documents before import.

Problems are collected rather than raised so a caller sees every one of
them at once; a document with any error is not imported. Identifier field
misconfiguration is not a document problem and raises ``ConfigurationError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..identifiers import validate_identifier_field
from ..models.export_format import FORMAT_VERSION
from ..models.results import ImportValidationError
from ..models.schema import AttributeKind, ContentTypeSchema

if TYPE_CHECKING:
    from ..cache.schema_cache import InMemorySchemaCache

logger = logging.getLogger(__name__)

VERSION_KEYS = ("draft", "published")


async def validate_document(
    raw: Any, schemas: InMemorySchemaCache
) -> list[ImportValidationError]:
    """Validate a raw (parsed JSON) interchange document.

    Checks the envelope, the shape of every entry, that every content type
    exists, that required attributes are present on published versions
    (components included), that dynamic zone items name their component, and
    that unique values are not repeated within the document. Relation targets
    are not checked here; they may be created by the import itself.

    Args:
        raw: Parsed document
        schemas: Schema cache for the target store

    Returns:
        Validation errors, empty when the document can be imported

    Raises:
        ConfigurationError: If a content type's identifier field is unusable
    """
    if not isinstance(raw, dict) or raw.get("version") != FORMAT_VERSION:
        message = f"Invalid file version. Expected version {FORMAT_VERSION}."
        return [ImportValidationError.at(message)]

    data = raw.get("data")
    if not isinstance(data, dict):
        return [ImportValidationError.at("Invalid file structure. Expected data object.")]

    errors: list[ImportValidationError] = []
    for uid, entries in data.items():
        if not isinstance(entries, list):
            errors.append(ImportValidationError.at(f"Entries of {uid} must be an array", [uid]))
            continue

        schema = await schemas.get_schema(uid)
        if schema is None:
            errors.append(ImportValidationError.at(f"Model {uid} not found", [uid]))
            continue

        if not schema.is_single_type:
            validate_identifier_field(schema)

        shaped = _check_shape(uid, entries, errors)
        for entry in shaped:
            for version, locales in entry.items():
                for locale, record in locales.items():
                    await _check_record(
                        record,
                        schema,
                        schemas,
                        [uid, version, locale],
                        errors,
                        check_required=version == "published",
                    )
        _check_unique(uid, schema, shaped, errors)

    if errors:
        logger.info(f"Document validation found {len(errors)} errors")
    return errors


def _check_shape(
    uid: str, entries: list[Any], errors: list[ImportValidationError]
) -> list[dict[str, dict[str, dict[str, Any]]]]:
    """Return the entries that are well formed, reporting the others."""
    valid = []
    for index, entry in enumerate(entries):
        path = [uid, str(index)]
        if not isinstance(entry, dict):
            errors.append(ImportValidationError.at("Entry must be an object", path, entry))
            continue

        unknown = [key for key in entry if key not in VERSION_KEYS]
        if unknown:
            errors.append(
                ImportValidationError.at(
                    f"Unknown entry keys {unknown}. Expected 'draft' and/or 'published'.",
                    path,
                    entry,
                )
            )
            continue

        ok = True
        for version, locales in entry.items():
            if locales is None:
                continue
            records = locales.values() if isinstance(locales, dict) else None
            if records is None or not all(isinstance(r, dict) for r in records):
                errors.append(
                    ImportValidationError.at(
                        f"'{version}' must map locales to records", [*path, version], entry
                    )
                )
                ok = False
        if ok:
            valid.append({version: locales for version, locales in entry.items() if locales})
    return valid


async def _check_record(
    record: dict[str, Any],
    schema: ContentTypeSchema,
    schemas: InMemorySchemaCache,
    path: list[str],
    errors: list[ImportValidationError],
    *,
    check_required: bool,
) -> None:
    for attr in schema.attributes.values():
        value = record.get(attr.name)
        attr_path = [*path, attr.name]

        if value is None:
            if (
                check_required
                and attr.required
                and attr.kind not in (AttributeKind.RELATION, AttributeKind.MEDIA)
            ):
                where = f" in component '{schema.uid}'" if schema.is_component else ""
                errors.append(
                    ImportValidationError.at(
                        f"Required field '{attr.name}' is missing{where}", attr_path, record
                    )
                )
            continue

        if attr.kind is AttributeKind.COMPONENT:
            component = await schemas.get_component_schema(attr.target) if attr.target else None
            if component is None:
                errors.append(
                    ImportValidationError.at(f"Component {attr.target} not found", attr_path, value)
                )
                continue
            items = value if attr.repeatable and isinstance(value, list) else [value]
            for index, item in enumerate(items):
                item_path = [*attr_path, str(index)] if attr.repeatable else attr_path
                if not isinstance(item, dict):
                    errors.append(
                        ImportValidationError.at("Component must be an object", item_path, item)
                    )
                    continue
                await _check_record(
                    item, component, schemas, item_path, errors, check_required=check_required
                )

        elif attr.kind is AttributeKind.DYNAMIC_ZONE:
            if not isinstance(value, list):
                errors.append(
                    ImportValidationError.at("Dynamic zone must be an array", attr_path, value)
                )
                continue
            for index, item in enumerate(value):
                item_path = [*attr_path, str(index)]
                component_uid = item.get("__component") if isinstance(item, dict) else None
                if not component_uid:
                    errors.append(
                        ImportValidationError.at(
                            "Dynamic zone item missing __component field", item_path, item
                        )
                    )
                    continue
                component = await schemas.get_component_schema(component_uid)
                if component is None:
                    errors.append(
                        ImportValidationError.at(
                            f"Component {component_uid} not found", item_path, item
                        )
                    )
                    continue
                await _check_record(
                    item, component, schemas, item_path, errors, check_required=check_required
                )


def _check_unique(
    uid: str,
    schema: ContentTypeSchema,
    entries: list[dict[str, dict[str, dict[str, Any]]]],
    errors: list[ImportValidationError],
) -> None:
    """Unique values may not repeat across published entries of the same locale."""
    unique = [
        attr.name
        for attr in schema.attributes.values()
        if attr.unique and attr.kind is AttributeKind.SCALAR
    ]
    seen: set[tuple[str, str, Any]] = set()
    for entry in entries:
        for locale, record in (entry.get("published") or {}).items():
            for name in unique:
                value = record.get(name)
                if value is None or isinstance(value, (dict, list)):
                    continue
                key = (name, locale, value)
                if key in seen:
                    errors.append(
                        ImportValidationError.at(
                            f"Duplicate value '{value}' for unique field '{name}'",
                            [uid, "published", locale, name],
                            record,
                        )
                    )
                    continue
                seen.add(key)
