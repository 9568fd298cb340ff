"""Schema caching for strapi-transfer."""

from .schema_cache import InMemorySchemaCache

__all__ = ["InMemorySchemaCache"]
