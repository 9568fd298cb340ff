"""Strapi query-string encoding.

Strapi parses query strings with ``qs``, so nested filter, sort and populate
structures are sent in bracket notation::

    {"filters": {"slug": {"$eq": "hello"}}}  ->  {"filters[slug][$eq]": "hello"}
"""

from typing import Any


def _flatten(prefix: str, value: Any, params: dict[str, Any]) -> None:
    if isinstance(value, dict):
        for key, nested in value.items():
            _flatten(f"{prefix}[{key}]", nested, params)
    elif isinstance(value, (list, tuple)):
        for index, nested in enumerate(value):
            _flatten(f"{prefix}[{index}]", nested, params)
    elif isinstance(value, bool):
        params[prefix] = "true" if value else "false"
    elif value is not None:
        params[prefix] = value


def encode_query_params(query: dict[str, Any]) -> dict[str, Any]:
    """Flatten a nested query dict to bracket-notation parameters.

    Args:
        query: Nested query (``filters``, ``sort``, ``populate``, ``pagination``, ...)

    Returns:
        Flat dict suitable for ``httpx`` ``params``

    Example:
        >>> encode_query_params({"filters": {"documentId": {"$in": ["a", "b"]}}})
        {'filters[documentId][$in][0]': 'a', 'filters[documentId][$in][1]': 'b'}
        >>> encode_query_params({"populate": "*", "status": "draft"})
        {'populate': '*', 'status': 'draft'}
    """
    params: dict[str, Any] = {}
    for key, value in query.items():
        _flatten(key, value, params)
    return params
