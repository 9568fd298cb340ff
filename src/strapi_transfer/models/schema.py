"""Content-type schema models.

Strapi describes a content type as a mapping of attribute name to a raw
attribute dict (``{"type": "relation", "relation": "manyToOne", ...}``).
These models classify every attribute into one of a closed set of kinds so
the export and import walks can dispatch on the kind instead of poking at
raw dicts.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..utils.schema import extract_info_from_schema


class AttributeKind(str, Enum):
    """Closed set of attribute kinds the engine knows how to walk."""

    SCALAR = "scalar"
    RELATION = "relation"
    COMPONENT = "component"
    DYNAMIC_ZONE = "dynamiczone"
    MEDIA = "media"


class Cardinality(str, Enum):
    """Whether an attribute holds one value or a list."""

    SINGLE = "single"
    MANY = "many"


_KIND_BY_TYPE: dict[str, AttributeKind] = {
    "relation": AttributeKind.RELATION,
    "component": AttributeKind.COMPONENT,
    "dynamiczone": AttributeKind.DYNAMIC_ZONE,
    "media": AttributeKind.MEDIA,
}


class AttributeDescriptor(BaseModel):
    """A single classified attribute of a content type or component."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    kind: AttributeKind
    target: str | None = None
    components: tuple[str, ...] = ()
    cardinality: Cardinality = Cardinality.SINGLE
    repeatable: bool = False
    required: bool = False
    unique: bool = False
    configurable: bool = True
    allowed_types: tuple[str, ...] | None = None
    relation: str | None = None

    @classmethod
    def from_strapi(cls, name: str, raw: dict[str, Any]) -> "AttributeDescriptor":
        """Classify a raw Strapi attribute definition.

        Args:
            name: Attribute name
            raw: Attribute dict as returned by the Content-Type Builder API

        Returns:
            Classified attribute descriptor

        Example:
            >>> attr = AttributeDescriptor.from_strapi(
            ...     "categories",
            ...     {"type": "relation", "relation": "manyToMany",
            ...      "target": "api::category.category"},
            ... )
            >>> attr.kind, attr.cardinality
            (<AttributeKind.RELATION: 'relation'>, <Cardinality.MANY: 'many'>)
        """
        raw_type = str(raw.get("type", ""))
        kind = _KIND_BY_TYPE.get(raw_type, AttributeKind.SCALAR)

        target: str | None = None
        relation: str | None = None
        many = False

        if kind is AttributeKind.RELATION:
            target = raw.get("target")
            relation = raw.get("relation")
            many = bool(relation) and (relation.endswith("Many") or relation == "manyWay")
        elif kind is AttributeKind.COMPONENT:
            target = raw.get("component")
            many = bool(raw.get("repeatable", False))
        elif kind is AttributeKind.DYNAMIC_ZONE:
            many = True
        elif kind is AttributeKind.MEDIA:
            many = bool(raw.get("multiple", False))

        allowed = raw.get("allowedTypes")

        return cls(
            name=name,
            type=raw_type,
            kind=kind,
            target=target,
            components=tuple(raw.get("components") or ()),
            cardinality=Cardinality.MANY if many else Cardinality.SINGLE,
            repeatable=bool(raw.get("repeatable", False)),
            required=bool(raw.get("required", False)),
            unique=bool(raw.get("unique", False)),
            configurable=raw.get("configurable", True) is not False,
            allowed_types=tuple(allowed) if allowed else None,
            relation=relation,
        )

    @property
    def is_many(self) -> bool:
        """True when the attribute holds a list of values."""
        return self.cardinality is Cardinality.MANY


class ContentTypeInfo(BaseModel):
    """Display and naming information for a content type."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    display_name: str = Field("", alias="displayName")
    singular_name: str | None = Field(None, alias="singularName")
    plural_name: str | None = Field(None, alias="pluralName")
    description: str | None = None


class ContentTypeSchema(BaseModel):
    """Classified schema of a content type or component.

    Immutable for the duration of an export or import run.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uid: str
    kind: str = "collectionType"
    info: ContentTypeInfo = Field(default_factory=ContentTypeInfo)
    attributes: dict[str, AttributeDescriptor] = Field(default_factory=dict)
    plugin_options: dict[str, Any] = Field(default_factory=dict, alias="pluginOptions")

    @classmethod
    def from_strapi(cls, uid: str, raw: dict[str, Any]) -> "ContentTypeSchema":
        """Build a schema from a Content-Type Builder payload.

        Accepts both the ``{"uid": ..., "schema": {...}}`` envelope and a bare
        schema dict.

        Args:
            uid: Content type or component UID
            raw: Raw schema payload

        Returns:
            Classified schema
        """
        schema = raw.get("schema", raw)
        if "category" in raw and "kind" not in schema:
            kind = "component"
        else:
            kind = schema.get("kind", raw.get("kind", "collectionType"))

        attributes = {
            name: AttributeDescriptor.from_strapi(name, attr)
            for name, attr in (schema.get("attributes") or {}).items()
            if isinstance(attr, dict)
        }

        return cls(
            uid=uid,
            kind=kind,
            info=ContentTypeInfo.model_validate(extract_info_from_schema(schema)),
            attributes=attributes,
            plugin_options=schema.get("pluginOptions") or {},
        )

    @property
    def display_name(self) -> str:
        return self.info.display_name

    @property
    def singular_name(self) -> str | None:
        return self.info.singular_name

    @property
    def plural_name(self) -> str | None:
        return self.info.plural_name

    @property
    def is_single_type(self) -> bool:
        """True for singleton content types (at most one record)."""
        return self.kind == "singleType"

    @property
    def is_component(self) -> bool:
        return self.kind == "component"

    @property
    def localized(self) -> bool:
        """True when i18n is enabled for this content type."""
        i18n = self.plugin_options.get("i18n") or {}
        return bool(i18n.get("localized", False))

    def get_attribute(self, name: str) -> AttributeDescriptor | None:
        return self.attributes.get(name)

    def attributes_of_kind(self, *kinds: AttributeKind) -> list[AttributeDescriptor]:
        """Return attributes of the given kinds, in schema order."""
        return [attr for attr in self.attributes.values() if attr.kind in kinds]
