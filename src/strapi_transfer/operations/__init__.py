"""Shared query and media helpers."""

from .media import FileData, file_data_from_url, is_extension_allowed, to_absolute_url
from .query import encode_query_params

__all__ = [
    "FileData",
    "encode_query_params",
    "file_data_from_url",
    "is_extension_allowed",
    "to_absolute_url",
]
