"""Structural interfaces for the collaborators the engine consumes.

The engine never talks to a database or HTTP API directly; it goes through
these protocols. ``StrapiRestStore`` implements all three over the Strapi
REST API, and tests plug in in-memory fakes.
"""

from typing import Any, Literal, Protocol, runtime_checkable

from .models.schema import ContentTypeSchema

Status = Literal["draft", "published"]
Record = dict[str, Any]


@runtime_checkable
class DocumentStore(Protocol):
    """Document-level read/write access keyed by store document identity.

    Records are plain dicts carrying ``id``, ``documentId``, ``locale`` and
    ``publishedAt`` plus attribute values. Populated relations are dicts with
    at least ``documentId``; populated media are dicts with ``id`` and
    ``url``; ``localizations`` holds the other locale variants when
    requested through ``populate``.
    """

    async def find_many(
        self,
        uid: str,
        *,
        filters: dict[str, Any] | None = None,
        sort: Any = None,
        status: Status = "draft",
        locale: str | None = None,
        populate: Any = None,
    ) -> list[Record]: ...

    async def find_one(
        self,
        uid: str,
        document_id: str,
        *,
        status: Status = "draft",
        locale: str | None = None,
        populate: Any = None,
    ) -> Record | None: ...

    async def find_first(
        self,
        uid: str,
        *,
        filters: dict[str, Any] | None = None,
        status: Status | None = None,
        locale: str | None = None,
    ) -> Record | None: ...

    async def create(
        self,
        uid: str,
        *,
        data: dict[str, Any],
        status: Status = "draft",
        locale: str | None = None,
    ) -> Record: ...

    async def update(
        self,
        uid: str,
        document_id: str,
        *,
        data: dict[str, Any],
        status: Status = "draft",
        locale: str | None = None,
    ) -> Record: ...


@runtime_checkable
class MediaStore(Protocol):
    """Media library access."""

    async def find_file(self, *, hash: str | None = None, name: str | None = None) -> Record | None:
        """Find a file by hash prefix or exact name (whichever is given)."""
        ...

    async def upload_file(
        self,
        content: bytes,
        *,
        filename: str,
        mime: str | None = None,
        file_info: dict[str, Any] | None = None,
    ) -> Record: ...


@runtime_checkable
class SchemaSource(Protocol):
    """Schema metadata for content types and components."""

    async def get_schema(self, uid: str) -> ContentTypeSchema | None: ...

    async def list_content_types(self) -> list[str]: ...
