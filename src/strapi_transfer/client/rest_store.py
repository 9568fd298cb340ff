"""Strapi v5 REST adapter for the engine's store protocols.

``StrapiRestStore`` implements ``DocumentStore``, ``MediaStore`` and
``SchemaSource`` on top of the Content API (``/api/{pluralName}``), the
upload plugin (``/api/upload``) and the Content-Type Builder
(``/api/content-type-builder``).
"""

import json
import logging
from typing import Any

import httpx

from ..exceptions import NotFoundError
from ..models.config import TransferConfig
from ..models.schema import ContentTypeSchema
from ..operations.query import encode_query_params
from ..protocols import Record, Status
from ..utils.uid import MEDIA_FILE_UID, uid_to_endpoint
from .base import BaseStoreClient

logger = logging.getLogger(__name__)


class StrapiRestStore(BaseStoreClient):
    """Document, media and schema access over the Strapi REST API.

    Example:
        >>> config = TransferConfig(base_url="http://localhost:1337", api_token="token")
        >>> async with StrapiRestStore(config) as store:
        ...     articles = await store.find_many("api::article.article", status="published")
    """

    def __init__(
        self, config: TransferConfig, http_client: httpx.AsyncClient | None = None
    ) -> None:
        super().__init__(config, http_client)
        self._schemas: dict[str, ContentTypeSchema | None] = {}

    # Schema source

    async def get_schema(self, uid: str) -> ContentTypeSchema | None:
        """Fetch a content type or component schema.

        Component UIDs have no ``::`` namespace (``shared.seo``) and are read
        from the components endpoint.

        Returns:
            Classified schema, or None when the UID is unknown
        """
        if uid in self._schemas:
            return self._schemas[uid]

        endpoint = (
            f"content-type-builder/content-types/{uid}"
            if "::" in uid
            else f"content-type-builder/components/{uid}"
        )
        try:
            raw_response = await self.request("GET", endpoint)
        except NotFoundError:
            logger.debug(f"Schema not found in Content-Type Builder: {uid}")
            self._schemas[uid] = None
            return None

        payload = raw_response.get("data", raw_response) if isinstance(raw_response, dict) else {}
        schema = ContentTypeSchema.from_strapi(uid, payload)
        self._schemas[uid] = schema
        return schema

    async def list_content_types(self) -> list[str]:
        raw_response = await self.request("GET", "content-type-builder/content-types")
        items = raw_response.get("data", []) if isinstance(raw_response, dict) else []
        uids: list[str] = []
        for item in items:
            uid = item.get("uid")
            if not uid:
                continue
            uids.append(uid)
            self._schemas.setdefault(uid, ContentTypeSchema.from_strapi(uid, item))
        return uids

    async def _endpoint(self, uid: str) -> tuple[str, bool]:
        """Resolve the REST path of a content type and whether it is a single type."""
        schema = await self.get_schema(uid)
        if schema is None:
            return uid_to_endpoint(uid), False
        if schema.is_single_type:
            return schema.singular_name or uid_to_endpoint(uid), True
        return schema.plural_name or uid_to_endpoint(uid), False

    # Document store

    async def find_many(
        self,
        uid: str,
        *,
        filters: dict[str, Any] | None = None,
        sort: Any = None,
        status: Status = "draft",
        locale: str | None = None,
        populate: Any = None,
    ) -> list[Record]:
        """Read every matching document, following pagination.

        Single types yield at most one document.
        """
        if uid == MEDIA_FILE_UID:
            return await self.list_files(filters=filters)

        endpoint, single = await self._endpoint(uid)
        query: dict[str, Any] = {"status": status}
        if locale:
            query["locale"] = locale
        if populate is not None:
            query["populate"] = populate

        if single:
            try:
                raw_response = await self.request(
                    "GET", endpoint, params=encode_query_params(query)
                )
            except NotFoundError:
                return []
            document = raw_response.get("data") if raw_response else None
            return [document] if document else []

        if filters:
            query["filters"] = filters
        if sort is not None:
            query["sort"] = sort

        results: list[Record] = []
        page = 1
        while True:
            params = encode_query_params(
                {**query, "pagination": {"page": page, "pageSize": self.config.page_size}}
            )
            raw_response = await self.request("GET", endpoint, params=params)
            batch = raw_response.get("data") or []
            results.extend(batch)

            pagination = (raw_response.get("meta") or {}).get("pagination") or {}
            page_count = pagination.get("pageCount", 1)
            logger.debug(f"Fetched page {page}/{page_count} of {uid} ({len(batch)} items)")
            if page >= page_count or not batch:
                break
            page += 1

        return results

    async def find_one(
        self,
        uid: str,
        document_id: str,
        *,
        status: Status = "draft",
        locale: str | None = None,
        populate: Any = None,
    ) -> Record | None:
        if uid == MEDIA_FILE_UID:
            files = await self.list_files(filters={"documentId": {"$eq": document_id}})
            return files[0] if files else None

        endpoint, single = await self._endpoint(uid)
        query: dict[str, Any] = {"status": status}
        if locale:
            query["locale"] = locale
        if populate is not None:
            query["populate"] = populate

        path = endpoint if single else f"{endpoint}/{document_id}"
        try:
            raw_response = await self.request("GET", path, params=encode_query_params(query))
        except NotFoundError:
            return None

        document = raw_response.get("data") if raw_response else None
        if single and document and document.get("documentId") != document_id:
            return None
        return document

    async def find_first(
        self,
        uid: str,
        *,
        filters: dict[str, Any] | None = None,
        status: Status | None = None,
        locale: str | None = None,
    ) -> Record | None:
        endpoint, single = await self._endpoint(uid)
        query: dict[str, Any] = {}
        if status:
            query["status"] = status
        if locale:
            query["locale"] = locale

        if single:
            try:
                raw_response = await self.request(
                    "GET", endpoint, params=encode_query_params(query)
                )
            except NotFoundError:
                return None
            return raw_response.get("data") if raw_response else None

        if filters:
            query["filters"] = filters
        query["pagination"] = {"page": 1, "pageSize": 1}
        raw_response = await self.request(
            "GET", endpoint, params=encode_query_params(query)
        )
        batch = raw_response.get("data") or []
        return batch[0] if batch else None

    async def create(
        self,
        uid: str,
        *,
        data: dict[str, Any],
        status: Status = "draft",
        locale: str | None = None,
    ) -> Record:
        endpoint, single = await self._endpoint(uid)
        query: dict[str, Any] = {"status": status}
        if locale:
            query["locale"] = locale

        method = "PUT" if single else "POST"
        raw_response = await self.request(
            method, endpoint, params=encode_query_params(query), json={"data": data}
        )
        document: Record = raw_response["data"]
        logger.debug(f"Created {uid} document {document.get('documentId')} ({status})")
        return document

    async def update(
        self,
        uid: str,
        document_id: str,
        *,
        data: dict[str, Any],
        status: Status = "draft",
        locale: str | None = None,
    ) -> Record:
        endpoint, single = await self._endpoint(uid)
        query: dict[str, Any] = {"status": status}
        if locale:
            query["locale"] = locale

        path = endpoint if single else f"{endpoint}/{document_id}"
        raw_response = await self.request(
            "PUT", path, params=encode_query_params(query), json={"data": data}
        )
        document: Record = raw_response["data"]
        logger.debug(f"Updated {uid} document {document_id} ({status})")
        return document

    # Media store

    async def list_files(self, *, filters: dict[str, Any] | None = None) -> list[Record]:
        """List upload-plugin files matching ``filters``."""
        query: dict[str, Any] = {}
        if filters:
            query["filters"] = filters
        raw_response = await self.request("GET", "upload/files", params=encode_query_params(query))
        if isinstance(raw_response, dict):
            return raw_response.get("data") or []
        return raw_response or []

    async def find_file(self, *, hash: str | None = None, name: str | None = None) -> Record | None:
        """Find a file by hash prefix, else by exact name."""
        if hash:
            files = await self.list_files(filters={"hash": {"$startsWith": hash}})
            if files:
                return files[0]
        if name:
            files = await self.list_files(filters={"name": {"$eq": name}})
            if files:
                return files[0]
        return None

    async def upload_file(
        self,
        content: bytes,
        *,
        filename: str,
        mime: str | None = None,
        file_info: dict[str, Any] | None = None,
    ) -> Record:
        """Upload raw bytes to the media library.

        Returns:
            The stored file record (``id``, ``url``, ``hash``, ...)
        """
        files = {"files": (filename, content, mime or "application/octet-stream")}
        data = {"fileInfo": json.dumps(file_info)} if file_info else None
        raw_response = await self.request("POST", "upload", files=files, data=data)

        # Upload endpoint returns array with single file
        if isinstance(raw_response, list) and raw_response:
            uploaded: Record = raw_response[0]
        else:
            uploaded = raw_response
        logger.info(f"Uploaded media file {filename} as {MEDIA_FILE_UID} {uploaded.get('id')}")
        return uploaded
