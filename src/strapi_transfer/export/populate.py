"""Schema-aware populate trees for store reads.

Relations and media are populated one level deep; components are populated
with their own relations and media; dynamic zones are populated with ``*``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..models.schema import AttributeKind

if TYPE_CHECKING:
    from ..cache.schema_cache import InMemorySchemaCache

logger = logging.getLogger(__name__)


async def _component_populate(uid: str, cache: InMemorySchemaCache, depth: int) -> Any:
    schema = await cache.get_component_schema(uid)
    if schema is None or depth < 1:
        return True

    nested: dict[str, Any] = {}
    for attr in schema.attributes.values():
        if attr.kind in (AttributeKind.RELATION, AttributeKind.MEDIA):
            nested[attr.name] = True
        elif attr.kind is AttributeKind.COMPONENT and attr.target:
            nested[attr.name] = await _component_populate(attr.target, cache, depth - 1)
        elif attr.kind is AttributeKind.DYNAMIC_ZONE:
            nested[attr.name] = {"populate": "*"}
    return {"populate": nested} if nested else True


async def build_populate(uid: str, cache: InMemorySchemaCache, depth: int = 5) -> dict[str, Any]:
    """Build the populate tree used to read full records of ``uid``.

    Args:
        uid: Content type UID
        cache: Schema cache for the current run
        depth: Maximum component nesting to populate explicitly

    Returns:
        Populate dict keyed by attribute name

    Example:
        >>> await build_populate("api::article.article", cache)
        {'cover': True, 'category': True, 'seo': {'populate': {'image': True}}, 'blocks': '*'}
    """
    schema = await cache.get_schema(uid)
    if schema is None:
        return {}

    populate: dict[str, Any] = {}
    for attr in schema.attributes.values():
        if attr.kind is AttributeKind.SCALAR:
            continue
        elif attr.kind in (AttributeKind.RELATION, AttributeKind.MEDIA):
            populate[attr.name] = True
        elif attr.kind is AttributeKind.COMPONENT:
            populate[attr.name] = (
                await _component_populate(attr.target, cache, depth - 1) if attr.target else True
            )
        elif attr.kind is AttributeKind.DYNAMIC_ZONE:
            nested_kinds = False
            for component_uid in attr.components:
                component = await cache.get_component_schema(component_uid)
                if component and component.attributes_of_kind(
                    AttributeKind.RELATION, AttributeKind.MEDIA
                ):
                    nested_kinds = True
                    break
            populate[attr.name] = {"populate": "*"} if nested_kinds else "*"
        else:
            raise ValueError(f"Unhandled attribute kind: {attr.kind}")

    logger.debug(f"Populate for {uid}: {populate}")
    return populate
