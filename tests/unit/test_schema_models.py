"""Tests for schema and interchange format models."""

import pytest
from pydantic import ValidationError

from strapi_transfer.models import (
    AttributeDescriptor,
    AttributeKind,
    Cardinality,
    ContentTypeSchema,
    EntryVersion,
    InterchangeDocument,
)


class TestAttributeDescriptor:
    """Tests for attribute classification."""

    @pytest.mark.parametrize(
        ("relation", "many"),
        [
            ("oneToOne", False),
            ("manyToOne", False),
            ("oneToMany", True),
            ("manyToMany", True),
            ("oneWay", False),
            ("manyWay", True),
            ("morphToMany", True),
        ],
    )
    def test_relation_cardinality(self, relation: str, many: bool) -> None:
        attr = AttributeDescriptor.from_strapi(
            "rel", {"type": "relation", "relation": relation, "target": "api::x.x"}
        )

        assert attr.kind is AttributeKind.RELATION
        assert attr.target == "api::x.x"
        assert attr.is_many is many

    def test_component(self) -> None:
        attr = AttributeDescriptor.from_strapi(
            "seo", {"type": "component", "component": "shared.seo", "repeatable": True}
        )

        assert attr.kind is AttributeKind.COMPONENT
        assert attr.target == "shared.seo"
        assert attr.repeatable
        assert attr.cardinality is Cardinality.MANY

    def test_dynamic_zone(self) -> None:
        attr = AttributeDescriptor.from_strapi(
            "blocks", {"type": "dynamiczone", "components": ["shared.a", "shared.b"]}
        )

        assert attr.kind is AttributeKind.DYNAMIC_ZONE
        assert attr.components == ("shared.a", "shared.b")
        assert attr.is_many

    def test_media(self) -> None:
        attr = AttributeDescriptor.from_strapi(
            "gallery", {"type": "media", "multiple": True, "allowedTypes": ["images", "videos"]}
        )

        assert attr.kind is AttributeKind.MEDIA
        assert attr.is_many
        assert attr.allowed_types == ("images", "videos")

    def test_scalar_flags(self) -> None:
        attr = AttributeDescriptor.from_strapi(
            "code", {"type": "string", "required": True, "unique": True, "configurable": False}
        )

        assert attr.kind is AttributeKind.SCALAR
        assert attr.required and attr.unique
        assert not attr.configurable


class TestContentTypeSchema:
    """Tests for schema parsing."""

    def test_envelope_payload(self) -> None:
        schema = ContentTypeSchema.from_strapi(
            "api::article.article",
            {
                "uid": "api::article.article",
                "schema": {
                    "kind": "collectionType",
                    "displayName": "Article",
                    "singularName": "article",
                    "pluralName": "articles",
                    "pluginOptions": {"i18n": {"localized": True}},
                    "attributes": {
                        "title": {"type": "string"},
                        "cover": {"type": "media"},
                    },
                },
            },
        )

        assert schema.display_name == "Article"
        assert schema.plural_name == "articles"
        assert schema.localized
        assert not schema.is_single_type
        assert list(schema.attributes) == ["title", "cover"]
        assert [a.name for a in schema.attributes_of_kind(AttributeKind.MEDIA)] == ["cover"]

    def test_single_type(self) -> None:
        schema = ContentTypeSchema.from_strapi(
            "api::homepage.homepage", {"kind": "singleType", "attributes": {}}
        )

        assert schema.is_single_type
        assert not schema.localized

    def test_component_payload(self) -> None:
        schema = ContentTypeSchema.from_strapi(
            "shared.seo", {"uid": "shared.seo", "category": "shared", "schema": {"attributes": {}}}
        )

        assert schema.is_component


class TestEntryVersion:
    """Tests for entry versions and documents."""

    def test_statuses_published_first(self) -> None:
        entry = EntryVersion(draft={"default": {"a": 1}}, published={"default": {"a": 2}})

        assert [status for status, _ in entry.statuses()] == ["published", "draft"]

    def test_to_json_omits_absent_draft(self) -> None:
        entry = EntryVersion(published={"default": {"title": "T", "category": None}})

        assert entry.to_json_dict() == {"published": {"default": {"title": "T", "category": None}}}

    def test_matches_any_locale(self) -> None:
        entry = EntryVersion(published={"default": {"slug": "a"}, "fr": {"slug": "a-fr"}})

        assert entry.matches("slug", "a-fr")
        assert not entry.matches("slug", "b")

    def test_unknown_entry_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EntryVersion.model_validate({"archived": {}})

    def test_document(self) -> None:
        document = InterchangeDocument.model_validate(
            {
                "version": 3,
                "data": {
                    "api::a.a": [{"published": {"default": {"name": "x"}}}],
                    "api::b.b": [{"draft": {"default": {}}}, {"draft": {"default": {}}}],
                },
            }
        )

        assert document.get_entry_count() == 3
        assert document.to_json_dict()["data"]["api::b.b"] == [
            {"draft": {"default": {}}},
            {"draft": {"default": {}}},
        ]

    def test_document_version_must_be_3(self) -> None:
        with pytest.raises(ValidationError):
            InterchangeDocument.model_validate({"version": 2, "data": {}})
