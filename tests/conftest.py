"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import copy
import itertools
import re
from typing import Any

import pytest

from strapi_transfer import TransferConfig
from strapi_transfer.exceptions import NotFoundError
from strapi_transfer.export import importer
from strapi_transfer.models.config import RetryConfig
from strapi_transfer.models.schema import AttributeKind, ContentTypeSchema

DEFAULT_STORE_LOCALE = "en"


def _matches(record: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    for field, condition in (filters or {}).items():
        value = record.get(field)
        if isinstance(condition, dict):
            for op, expected in condition.items():
                if op == "$eq" and value != expected:
                    return False
                if op == "$in" and value not in expected:
                    return False
                if op == "$startsWith" and not str(value or "").startswith(expected):
                    return False
        elif value != condition:
            return False
    return True


class FakeStore:
    """In-memory document store, media library and schema source.

    Documents are kept per status and locale the way Strapi v5 keeps them: a
    published write also updates the draft. Relations are stored as document
    ids and media as file ids; reads with ``populate`` expand them.
    """

    def __init__(self, schemas: dict[str, dict[str, Any]] | None = None) -> None:
        self.schemas: dict[str, ContentTypeSchema] = {}
        self.documents: dict[str, dict[str, dict[str, dict[str, dict[str, Any]]]]] = {}
        self.files: list[dict[str, Any]] = []
        self.uploads: list[dict[str, Any]] = []
        self.writes: list[tuple[str, str, str, str | None]] = []
        self.schema_requests: list[str] = []
        self._ids = itertools.count(1)
        self._file_ids = itertools.count(100)
        for uid, raw in (schemas or {}).items():
            self.add_schema(uid, raw)

    def add_schema(self, uid: str, raw: dict[str, Any]) -> None:
        self.schemas[uid] = ContentTypeSchema.from_strapi(uid, raw)

    # SchemaSource

    async def get_schema(self, uid: str) -> ContentTypeSchema | None:
        self.schema_requests.append(uid)
        return self.schemas.get(uid)

    async def list_content_types(self) -> list[str]:
        return [uid for uid, schema in self.schemas.items() if not schema.is_component]

    # Seeding and inspection helpers

    def seed(
        self,
        uid: str,
        data: dict[str, Any],
        *,
        status: str = "published",
        locale: str | None = None,
        document_id: str | None = None,
    ) -> str:
        """Store a record directly and return its document id."""
        document_id = document_id or f"{uid.rsplit('.', 1)[-1]}-{next(self._ids)}"
        self._put(uid, document_id, dict(data), status, locale)
        return document_id

    def add_file(self, **fields: Any) -> dict[str, Any]:
        file = {"id": next(self._file_ids), **fields}
        self.files.append(file)
        return file

    def get(
        self, uid: str, document_id: str, status: str = "published", locale: str | None = None
    ) -> dict[str, Any] | None:
        versions = self.documents.get(uid, {}).get(document_id, {}).get(status, {})
        return versions.get(locale or DEFAULT_STORE_LOCALE)

    def all(self, uid: str, status: str = "published") -> list[dict[str, Any]]:
        return [
            versions[status][DEFAULT_STORE_LOCALE]
            for versions in self.documents.get(uid, {}).values()
            if DEFAULT_STORE_LOCALE in versions.get(status, {})
        ]

    def count(self, uid: str) -> int:
        return len(self.documents.get(uid, {}))

    def _put(
        self, uid: str, document_id: str, data: dict[str, Any], status: str, locale: str | None
    ) -> dict[str, Any]:
        key = locale or DEFAULT_STORE_LOCALE
        versions = self.documents.setdefault(uid, {}).setdefault(document_id, {})
        statuses = ("draft", "published") if status == "published" else ("draft",)
        record: dict[str, Any] = {}
        for current in statuses:
            existing = versions.setdefault(current, {}).get(key)
            record = {
                **(existing or {}),
                **copy.deepcopy(data),
                "id": (existing or {}).get("id") or next(self._ids),
                "documentId": document_id,
                "locale": key,
                "publishedAt": "2024-01-01T00:00:00.000Z" if current == "published" else None,
            }
            versions[current][key] = record
        return copy.deepcopy(record)

    # DocumentStore

    async def find_many(
        self,
        uid: str,
        *,
        filters: dict[str, Any] | None = None,
        sort: Any = None,
        status: str = "draft",
        locale: str | None = None,
        populate: Any = None,
    ) -> list[dict[str, Any]]:
        results = []
        for document_id in self.documents.get(uid, {}):
            record = await self.find_one(
                uid, document_id, status=status, locale=locale, populate=populate
            )
            if record is not None and _matches(record, filters):
                results.append(record)
        return results

    async def find_one(
        self,
        uid: str,
        document_id: str,
        *,
        status: str = "draft",
        locale: str | None = None,
        populate: Any = None,
    ) -> dict[str, Any] | None:
        versions = self.documents.get(uid, {}).get(document_id, {}).get(status, {})
        key = locale or DEFAULT_STORE_LOCALE
        record = versions.get(key)
        if record is None:
            return None
        record = copy.deepcopy(record)
        if populate is not None:
            record = self._populate(uid, record, status)
            if isinstance(populate, dict) and "localizations" in populate:
                record["localizations"] = [
                    self._populate(uid, copy.deepcopy(other), status)
                    for loc, other in versions.items()
                    if loc != key
                ]
        return record

    async def find_first(
        self,
        uid: str,
        *,
        filters: dict[str, Any] | None = None,
        status: str | None = None,
        locale: str | None = None,
    ) -> dict[str, Any] | None:
        records = await self.find_many(
            uid, filters=filters, status=status or "draft", locale=locale
        )
        return records[0] if records else None

    async def create(
        self,
        uid: str,
        *,
        data: dict[str, Any],
        status: str = "draft",
        locale: str | None = None,
    ) -> dict[str, Any]:
        document_id = f"{uid.rsplit('.', 1)[-1]}-{next(self._ids)}"
        self.writes.append(("create", uid, status, locale))
        return self._put(uid, document_id, data, status, locale)

    async def update(
        self,
        uid: str,
        document_id: str,
        *,
        data: dict[str, Any],
        status: str = "draft",
        locale: str | None = None,
    ) -> dict[str, Any]:
        if document_id not in self.documents.get(uid, {}):
            raise NotFoundError(f"Resource not found: {uid} {document_id}")
        self.writes.append(("update", uid, status, locale))
        return self._put(uid, document_id, data, status, locale)

    def _populate(self, uid: str, record: dict[str, Any], status: str) -> dict[str, Any]:
        schema = self.schemas.get(uid)
        if schema is None:
            return record
        for attr in schema.attributes.values():
            value = record.get(attr.name)
            if value is None:
                continue
            if attr.kind is AttributeKind.RELATION and attr.target:
                if isinstance(value, list):
                    record[attr.name] = [
                        t for t in (self._target(attr.target, v, status) for v in value) if t
                    ]
                else:
                    record[attr.name] = self._target(attr.target, value, status)
            elif attr.kind is AttributeKind.MEDIA:
                if isinstance(value, list):
                    record[attr.name] = [self._file(v) for v in value]
                else:
                    record[attr.name] = self._file(value)
            elif attr.kind is AttributeKind.COMPONENT and attr.target:
                items = value if isinstance(value, list) else [value]
                populated = [self._populate(attr.target, item, status) for item in items]
                record[attr.name] = populated if isinstance(value, list) else populated[0]
            elif attr.kind is AttributeKind.DYNAMIC_ZONE:
                record[attr.name] = [
                    self._populate(item.get("__component", ""), item, status) for item in value
                ]
        return record

    def _target(self, uid: str, value: Any, status: str) -> dict[str, Any] | None:
        if isinstance(value, dict):
            return value
        versions = self.documents.get(uid, {}).get(value, {})
        record = versions.get(status, {}).get(DEFAULT_STORE_LOCALE) or versions.get(
            "draft", {}
        ).get(DEFAULT_STORE_LOCALE)
        return copy.deepcopy(record) if record else None

    def _file(self, value: Any) -> Any:
        if isinstance(value, dict):
            return value
        for file in self.files:
            if file["id"] == value:
                return dict(file)
        return None

    # MediaStore

    async def find_file(
        self, *, hash: str | None = None, name: str | None = None
    ) -> dict[str, Any] | None:
        for file in self.files:
            if hash and str(file.get("hash", "")).startswith(hash):
                return file
        for file in self.files:
            if name and file.get("name") == name:
                return file
        return None

    async def upload_file(
        self,
        content: bytes,
        *,
        filename: str,
        mime: str | None = None,
        file_info: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        stem, _, ext = filename.rpartition(".")
        info = file_info or {}
        file = self.add_file(
            name=info.get("name") or filename,
            hash=re.sub(r"[^A-Za-z0-9]+", "_", stem or filename),
            ext=f".{ext}" if stem else "",
            mime=mime,
            url=f"/uploads/{filename}",
            alternativeText=info.get("alternativeText"),
            caption=info.get("caption"),
        )
        self.uploads.append({"filename": filename, "content": content, "file_info": info})
        return file


# Schemas

CATEGORY_SCHEMA = {
    "kind": "collectionType",
    "info": {"displayName": "Category", "singularName": "category", "pluralName": "categories"},
    "attributes": {
        "name": {"type": "string", "required": True, "unique": True},
        "description": {"type": "text"},
    },
}

ARTICLE_SCHEMA = {
    "kind": "collectionType",
    "info": {"displayName": "Article", "singularName": "article", "pluralName": "articles"},
    "pluginOptions": {
        "i18n": {"localized": True},
        "import-export-entries": {"idField": "slug"},
    },
    "attributes": {
        "title": {"type": "string", "required": True},
        "slug": {"type": "uid", "targetField": "title", "required": True},
        "body": {"type": "richtext"},
        "category": {
            "type": "relation",
            "relation": "manyToOne",
            "target": "api::category.category",
        },
        "tags": {"type": "relation", "relation": "manyToMany", "target": "api::tag.tag"},
        "author": {"type": "relation", "relation": "manyToOne", "target": "admin::user"},
        "cover": {"type": "media", "multiple": False, "allowedTypes": ["images"]},
        "seo": {"type": "component", "component": "shared.seo", "repeatable": False},
        "blocks": {
            "type": "dynamiczone",
            "components": ["shared.quote", "shared.rich-text"],
        },
    },
}

TAG_SCHEMA = {
    "kind": "collectionType",
    "info": {"displayName": "Tag", "singularName": "tag", "pluralName": "tags"},
    "attributes": {
        "label": {"type": "string"},
    },
}

SEO_COMPONENT = {
    "category": "shared",
    "info": {"displayName": "Seo"},
    "attributes": {
        "metaTitle": {"type": "string", "required": True},
        "image": {"type": "media", "multiple": False, "allowedTypes": ["images"]},
    },
}

QUOTE_COMPONENT = {
    "category": "shared",
    "info": {"displayName": "Quote"},
    "attributes": {
        "text": {"type": "text", "required": True},
        "category": {
            "type": "relation",
            "relation": "oneToOne",
            "target": "api::category.category",
        },
    },
}

RICH_TEXT_COMPONENT = {
    "category": "shared",
    "info": {"displayName": "Rich text"},
    "attributes": {"body": {"type": "richtext"}},
}

HOMEPAGE_SCHEMA = {
    "kind": "singleType",
    "info": {"displayName": "Homepage", "singularName": "homepage", "pluralName": "homepages"},
    "attributes": {
        "headline": {"type": "string"},
        "featured": {
            "type": "relation",
            "relation": "oneToOne",
            "target": "api::article.article",
        },
    },
}


def chain_schemas() -> dict[str, dict[str, Any]]:
    """Content types a -> b -> c -> d, each pointing to the next."""
    schemas = {}
    names = ["a", "b", "c", "d"]
    for index, name in enumerate(names):
        attributes: dict[str, Any] = {"name": {"type": "string", "required": True, "unique": True}}
        if index + 1 < len(names):
            attributes["next"] = {
                "type": "relation",
                "relation": "oneToOne",
                "target": f"api::{names[index + 1]}.{names[index + 1]}",
            }
        schemas[f"api::{name}.{name}"] = {
            "kind": "collectionType",
            "info": {"displayName": name.upper(), "singularName": name, "pluralName": f"{name}s"},
            "attributes": attributes,
        }
    return schemas


def blog_schemas() -> dict[str, dict[str, Any]]:
    return {
        "api::category.category": CATEGORY_SCHEMA,
        "api::article.article": ARTICLE_SCHEMA,
        "api::tag.tag": TAG_SCHEMA,
        "api::homepage.homepage": HOMEPAGE_SCHEMA,
        "shared.seo": SEO_COMPONENT,
        "shared.quote": QUOTE_COMPONENT,
        "shared.rich-text": RICH_TEXT_COMPONENT,
    }


@pytest.fixture(autouse=True)
def release_import_guard(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test with no import running in the process."""
    monkeypatch.setattr(importer, "_import_in_progress", False)


@pytest.fixture
def transfer_config() -> TransferConfig:
    """Create a test transfer configuration.

    Returns:
        Test configuration with mock values and no retry waits
    """
    return TransferConfig(
        base_url="http://localhost:1337",
        api_token="test-token-12345678",
        server_public_hostname="https://cms.example.com",
        retry=RetryConfig(max_attempts=1, initial_wait=0, max_wait=0),
    )


@pytest.fixture
def blog_store() -> FakeStore:
    return FakeStore(blog_schemas())


@pytest.fixture
def chain_store() -> FakeStore:
    return FakeStore(chain_schemas())


@pytest.fixture
def no_retry() -> RetryConfig:
    return RetryConfig(max_attempts=1, initial_wait=0, max_wait=0)


@pytest.fixture
def make_store() -> type[FakeStore]:
    """Factory for stores with custom schemas."""
    return FakeStore
