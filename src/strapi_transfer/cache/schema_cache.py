"""In-memory schema cache.

Wraps a SchemaSource so each content type or component schema is fetched
once per cache instance. Exporters and importers create one cache per run,
which keeps schemas immutable for the duration of the run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..exceptions import StoreError
from ..models.schema import AttributeKind, ContentTypeSchema

if TYPE_CHECKING:
    from ..protocols import SchemaSource

logger = logging.getLogger(__name__)


class InMemorySchemaCache:
    """Caches classified schemas fetched from a schema source.

    Example:
        >>> cache = InMemorySchemaCache(store)
        >>> schema = await cache.get_schema("api::article.article")
        >>> [a.name for a in schema.attributes_of_kind(AttributeKind.RELATION)]
        ['author', 'categories']
    """

    def __init__(self, source: SchemaSource) -> None:
        self._source = source
        self._cache: dict[str, ContentTypeSchema | None] = {}
        self._fetch_count = 0

    async def get_schema(self, uid: str) -> ContentTypeSchema | None:
        """Get a schema, fetching it on a cache miss.

        Missing schemas are cached as ``None`` so repeated lookups of an
        unknown UID do not hit the source again.

        Args:
            uid: Content type or component UID

        Returns:
            The schema, or None if the source does not know the UID

        Raises:
            StoreError: If the source fails for reasons other than absence
        """
        if uid in self._cache:
            return self._cache[uid]

        self._fetch_count += 1
        schema = await self._source.get_schema(uid)
        if schema is None:
            logger.debug(f"Schema not found: {uid}")
        self._cache[uid] = schema
        return schema

    async def require_schema(self, uid: str) -> ContentTypeSchema:
        """Get a schema that must exist.

        Raises:
            StoreError: If the schema is unknown
        """
        schema = await self.get_schema(uid)
        if schema is None:
            raise StoreError(f"Schema not found: {uid}")
        return schema

    async def get_component_schema(self, uid: str) -> ContentTypeSchema | None:
        """Get a component schema, logging instead of raising on failure."""
        try:
            return await self.get_schema(uid)
        except StoreError:
            logger.warning(f"Could not fetch component schema: {uid}", exc_info=True)
            return None

    async def list_content_types(self) -> list[str]:
        return await self._source.list_content_types()

    async def has_nested_kind(self, uid: str, kind: AttributeKind) -> bool:
        """Whether ``uid`` or any component it embeds has an attribute of ``kind``."""
        return await self._has_nested_kind(uid, kind, set())

    async def _has_nested_kind(self, uid: str, kind: AttributeKind, seen: set[str]) -> bool:
        if uid in seen:
            return False
        seen.add(uid)

        schema = await self.get_schema(uid)
        if schema is None:
            return False
        if schema.attributes_of_kind(kind):
            return True

        for attr in schema.attributes_of_kind(AttributeKind.COMPONENT, AttributeKind.DYNAMIC_ZONE):
            nested = [attr.target] if attr.target else list(attr.components)
            for component_uid in nested:
                if await self._has_nested_kind(component_uid, kind, seen):
                    return True
        return False

    def has_schema(self, uid: str) -> bool:
        return self._cache.get(uid) is not None

    def clear(self) -> None:
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return sum(1 for schema in self._cache.values() if schema is not None)

    @property
    def fetch_count(self) -> int:
        return self._fetch_count
