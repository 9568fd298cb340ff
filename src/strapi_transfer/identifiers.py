"""Natural identifier field resolution.

Records are matched across environments by an identifier field instead of
the store's surrogate ``id``. A content type can name the field explicitly::

    "pluginOptions": {"import-export-entries": {"idField": "slug"}}

Otherwise the first of ``uid``, ``name`` and ``title`` present on the schema
is used, and ``id`` as a last resort. The ``id`` fallback is not portable:
exports never write it out, and relations to such content types are exported
as null.
"""

import logging

from .exceptions import IdFieldMisconfiguredError, IdFieldNotFoundError
from .models.schema import AttributeDescriptor, AttributeKind, ContentTypeSchema

logger = logging.getLogger(__name__)

CONFIG_KEY = "import-export-entries"
INTERNAL_ID_FIELD = "id"

UNIQUE_CAPABLE_TYPES = frozenset(
    {"string", "text", "email", "integer", "biginteger", "float", "decimal"}
)
UNIQUE_GUARANTEED_TYPES = frozenset({"uid"})
FALLBACK_FIELDS = ("uid", "name", "title")


def attribute_is_unique(attribute: AttributeDescriptor) -> bool:
    """Whether the attribute's type can carry a ``unique`` constraint."""
    return attribute.kind is AttributeKind.SCALAR and attribute.type in UNIQUE_CAPABLE_TYPES


def configured_identifier_field(schema: ContentTypeSchema) -> str | None:
    """Return the explicitly configured identifier field, if any."""
    options = schema.plugin_options.get(CONFIG_KEY) or {}
    field = options.get("idField") if isinstance(options, dict) else None
    return field or None


def _check_constraints(
    schema: ContentTypeSchema, field: str, attribute: AttributeDescriptor
) -> None:
    if attribute.type in UNIQUE_GUARANTEED_TYPES:
        if not attribute.required:
            raise IdFieldMisconfiguredError(
                f"IdField misconfigured in model: Field '{field}' in model '{schema.uid}' "
                f"must be required",
                details={"field": field, "contentType": schema.uid},
            )
        return

    if attribute_is_unique(attribute):
        if not attribute.required or not attribute.unique:
            raise IdFieldMisconfiguredError(
                f"IdField misconfigured in model: Field '{field}' in model '{schema.uid}' "
                f"must be both required and unique. Current settings - "
                f"required: {attribute.required}, unique: {attribute.unique}",
                details={"field": field, "contentType": schema.uid},
            )
        return

    raise IdFieldMisconfiguredError(
        f"IdField type not supported in model: Field '{field}' in model '{schema.uid}' "
        f"must have a unique option. Current settings - type: {attribute.type}",
        details={"field": field, "contentType": schema.uid},
    )


def resolve_identifier_field(schema: ContentTypeSchema) -> str:
    """Resolve the field used as the logical identity of records.

    Args:
        schema: Content type schema

    Returns:
        Attribute name, or ``"id"`` when nothing better is available

    Raises:
        IdFieldNotFoundError: If the configured field is not an attribute
        IdFieldMisconfiguredError: If the configured field cannot guarantee
            uniqueness

    Example:
        >>> resolve_identifier_field(schema_with_uid_and_name)
        'uid'
    """
    configured = configured_identifier_field(schema)
    if configured:
        attribute = schema.get_attribute(configured)
        if attribute is None:
            raise IdFieldNotFoundError(
                f"Configured idField '{configured}' not found in model '{schema.uid}'",
                details={"field": configured, "contentType": schema.uid},
            )
        _check_constraints(schema, configured, attribute)
        return configured

    for field in FALLBACK_FIELDS:
        if field in schema.attributes:
            return field

    logger.debug(f"No identifier field on {schema.uid}, falling back to internal id")
    return INTERNAL_ID_FIELD


def validate_identifier_field(schema: ContentTypeSchema) -> str:
    """Resolve the identifier field and require it to be a usable attribute.

    Stricter than :func:`resolve_identifier_field`: the fallback fields must
    also be required and unique, and the internal id fallback is rejected.

    Raises:
        IdFieldNotFoundError: If the field is not an attribute of the schema
        IdFieldMisconfiguredError: If the field cannot guarantee uniqueness
    """
    field = resolve_identifier_field(schema)
    attribute = schema.get_attribute(field)
    if attribute is None:
        raise IdFieldNotFoundError(
            f"IdField not found in model: Field '{field}' is missing from model '{schema.uid}'",
            details={"field": field, "contentType": schema.uid},
        )
    _check_constraints(schema, field, attribute)
    return field


def is_portable_identifier(field: str) -> bool:
    """False for the internal id fallback, which differs between environments."""
    return field != INTERNAL_ID_FIELD
