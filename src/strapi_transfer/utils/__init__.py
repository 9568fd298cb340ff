"""Utility modules for strapi-transfer.

This package contains helper utilities including:
- UID handling
- Schema payload normalization
"""

from strapi_transfer.utils.schema import extract_info_from_schema
from strapi_transfer.utils.uid import (
    ADMIN_USER_UID,
    MEDIA_FILE_UID,
    extract_model_name,
    is_api_content_type,
    is_plugin_content_type,
    uid_to_endpoint,
)

__all__ = [
    "ADMIN_USER_UID",
    "MEDIA_FILE_UID",
    "uid_to_endpoint",
    "extract_model_name",
    "is_api_content_type",
    "is_plugin_content_type",
    "extract_info_from_schema",
]
