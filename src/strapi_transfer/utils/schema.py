"""Schema utility functions."""

from typing import Any


def extract_info_from_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Extract info dict from schema, handling both v5 formats.

    Strapi v5 may return info in two formats:
    1. Nested: schema.info.displayName
    2. Flat: schema.displayName

    Args:
        schema: Schema dict from API response

    Returns:
        Info dict with displayName, singularName, pluralName, description
    """
    nested_info: dict[str, Any] = schema.get("info") or {}
    if nested_info.get("displayName") or nested_info.get("pluralName"):
        return nested_info

    return {
        "displayName": schema.get("displayName", ""),
        "singularName": schema.get("singularName"),
        "pluralName": schema.get("pluralName"),
        "description": schema.get("description"),
    }
