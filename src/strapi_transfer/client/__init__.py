"""Store clients for strapi-transfer."""

from .base import BaseStoreClient, create_retry_decorator, raise_for_response
from .rest_store import StrapiRestStore

__all__ = ["BaseStoreClient", "StrapiRestStore", "create_retry_decorator", "raise_for_response"]
