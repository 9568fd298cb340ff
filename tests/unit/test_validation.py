"""Tests for interchange document validation."""

import pytest

from strapi_transfer.cache import InMemorySchemaCache
from strapi_transfer.exceptions import IdFieldMisconfiguredError, IdFieldNotFoundError
from strapi_transfer.export import validate_document

ARTICLE = "api::article.article"
CATEGORY = "api::category.category"


async def validate(store, data, version=3):
    return await validate_document({"version": version, "data": data}, InMemorySchemaCache(store))


def messages(errors) -> list[str]:
    return [e.error for e in errors]


class TestEnvelope:
    """Tests for the document envelope."""

    async def test_valid_document(self, blog_store) -> None:
        errors = await validate(
            blog_store,
            {
                CATEGORY: [{"published": {"default": {"name": "news"}}}],
                ARTICLE: [
                    {
                        "published": {
                            "default": {"title": "Hello", "slug": "hello", "category": "news"}
                        },
                        "draft": {"default": {"slug": "hello"}},
                    }
                ],
            },
        )

        assert errors == []

    @pytest.mark.parametrize("raw", [{"version": 2, "data": {}}, {"data": {}}, [], "text"])
    async def test_wrong_version(self, blog_store, raw) -> None:
        errors = await validate_document(raw, InMemorySchemaCache(blog_store))

        assert messages(errors) == ["Invalid file version. Expected version 3."]

    async def test_data_not_object(self, blog_store) -> None:
        document = {"version": 3, "data": []}
        errors = await validate_document(document, InMemorySchemaCache(blog_store))

        assert messages(errors) == ["Invalid file structure. Expected data object."]

    async def test_entries_not_array(self, blog_store) -> None:
        errors = await validate(blog_store, {CATEGORY: {"name": "news"}})

        assert messages(errors) == [f"Entries of {CATEGORY} must be an array"]

    async def test_unknown_model(self, blog_store) -> None:
        errors = await validate(blog_store, {"api::ghost.ghost": []})

        assert messages(errors) == ["Model api::ghost.ghost not found"]
        assert errors[0].data["path"] == "api::ghost.ghost"


class TestEntryShape:
    """Tests for entry structure."""

    async def test_entry_not_object(self, blog_store) -> None:
        errors = await validate(blog_store, {CATEGORY: ["news"]})

        assert messages(errors) == ["Entry must be an object"]
        assert errors[0].data["path"] == f"{CATEGORY}.0"

    async def test_unknown_keys(self, blog_store) -> None:
        errors = await validate(blog_store, {CATEGORY: [{"name": "news"}]})

        assert len(errors) == 1
        assert errors[0].error.startswith("Unknown entry keys ['name']")

    async def test_locales_must_be_records(self, blog_store) -> None:
        errors = await validate(blog_store, {CATEGORY: [{"published": {"default": "news"}}]})

        assert messages(errors) == ["'published' must map locales to records"]


class TestRecords:
    """Tests for record contents."""

    async def test_required_field_missing(self, blog_store) -> None:
        errors = await validate(
            blog_store, {ARTICLE: [{"published": {"default": {"slug": "hello"}}}]}
        )

        assert messages(errors) == ["Required field 'title' is missing"]
        assert errors[0].data["path"] == f"{ARTICLE}.published.default.title"

    async def test_required_not_checked_on_drafts(self, blog_store) -> None:
        errors = await validate(blog_store, {ARTICLE: [{"draft": {"default": {"slug": "hello"}}}]})

        assert errors == []

    async def test_required_in_component(self, blog_store) -> None:
        errors = await validate(
            blog_store,
            {ARTICLE: [{"published": {"default": {"title": "T", "slug": "t", "seo": {}}}}]},
        )

        assert messages(errors) == [
            "Required field 'metaTitle' is missing in component 'shared.seo'"
        ]

    async def test_component_must_be_object(self, blog_store) -> None:
        errors = await validate(
            blog_store,
            {ARTICLE: [{"published": {"default": {"title": "T", "slug": "t", "seo": "SEO"}}}]},
        )

        assert messages(errors) == ["Component must be an object"]

    async def test_dynamic_zone_must_be_array(self, blog_store) -> None:
        errors = await validate(
            blog_store,
            {ARTICLE: [{"published": {"default": {"title": "T", "slug": "t", "blocks": {}}}}]},
        )

        assert messages(errors) == ["Dynamic zone must be an array"]

    async def test_dynamic_zone_items(self, blog_store) -> None:
        errors = await validate(
            blog_store,
            {
                ARTICLE: [
                    {
                        "published": {
                            "default": {
                                "title": "T",
                                "slug": "t",
                                "blocks": [
                                    {"text": "no component"},
                                    {"__component": "shared.missing"},
                                    {"__component": "shared.quote"},
                                ],
                            }
                        }
                    }
                ]
            },
        )

        assert messages(errors) == [
            "Dynamic zone item missing __component field",
            "Component shared.missing not found",
            "Required field 'text' is missing in component 'shared.quote'",
        ]
        assert errors[2].data["path"] == f"{ARTICLE}.published.default.blocks.2.text"

    async def test_relations_are_not_checked(self, blog_store) -> None:
        """Test unknown relation targets are left for the import to report."""
        errors = await validate(
            blog_store,
            {
                ARTICLE: [
                    {"published": {"default": {"title": "T", "slug": "t", "category": "nope"}}}
                ]
            },
        )

        assert errors == []


class TestUnique:
    """Tests for duplicate unique values."""

    async def test_duplicate_value(self, blog_store) -> None:
        errors = await validate(
            blog_store,
            {
                CATEGORY: [
                    {"published": {"default": {"name": "news"}}},
                    {"published": {"default": {"name": "news"}}},
                ]
            },
        )

        assert messages(errors) == ["Duplicate value 'news' for unique field 'name'"]
        assert errors[0].data["path"] == f"{CATEGORY}.published.default.name"

    async def test_same_value_in_other_locale(self, make_store) -> None:
        store = make_store(
            {
                CATEGORY: {
                    "kind": "collectionType",
                    "pluginOptions": {"i18n": {"localized": True}},
                    "attributes": {"name": {"type": "string", "required": True, "unique": True}},
                }
            }
        )

        errors = await validate(
            store,
            {
                CATEGORY: [
                    {"published": {"default": {"name": "news"}}},
                    {"published": {"fr": {"name": "news"}}},
                ]
            },
        )

        assert errors == []

    async def test_draft_duplicates_allowed(self, blog_store) -> None:
        errors = await validate(
            blog_store,
            {
                CATEGORY: [
                    {
                        "published": {"default": {"name": "news"}},
                        "draft": {"default": {"name": "news"}},
                    },
                ]
            },
        )

        assert errors == []


class TestIdentifierConfiguration:
    """Tests for identifier field configuration errors."""

    async def test_missing_identifier_raises(self, blog_store) -> None:
        with pytest.raises(IdFieldNotFoundError):
            await validate(blog_store, {"api::tag.tag": []})

    async def test_identifier_not_unique_raises(self, make_store) -> None:
        store = make_store(
            {
                "api::page.page": {
                    "kind": "collectionType",
                    "pluginOptions": {"import-export-entries": {"idField": "code"}},
                    "attributes": {"code": {"type": "string", "required": True}},
                }
            }
        )

        with pytest.raises(IdFieldMisconfiguredError, match="must be both required and unique"):
            await validate(store, {"api::page.page": []})

    async def test_single_type_needs_no_identifier(self, blog_store) -> None:
        errors = await validate(
            blog_store, {"api::homepage.homepage": [{"published": {"default": {"headline": "Hi"}}}]}
        )

        assert errors == []
