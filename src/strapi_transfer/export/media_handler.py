"""Media handling for export and import.

On export a media value is reduced to its URL and metadata; binaries are
never exported. On import the media library is searched by hash and then by
name, and only when nothing matches is the URL downloaded and uploaded.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from ..client.base import create_retry_decorator
from ..exceptions import MediaError, NetworkError, ServerError
from ..models.config import RetryConfig
from ..operations.media import (
    file_data_from_url,
    is_absolute_url,
    is_extension_allowed,
    to_absolute_url,
)

if TYPE_CHECKING:
    from ..protocols import MediaStore

logger = logging.getLogger(__name__)

MEDIA_FIELDS = (
    "url",
    "name",
    "hash",
    "alternativeText",
    "caption",
    "createdAt",
    "updatedAt",
    "publishedAt",
)


class MediaHandler:
    """Finds or imports media files referenced by incoming records.

    Example:
        >>> handler = MediaHandler(store, media_timeout=10)
        >>> file = await handler.find_or_import(
        ...     {"url": "https://cdn.example.com/cover.png", "hash": "cover_abc"},
        ...     allowed_types=("images",),
        ... )
        >>> file["id"]
        12
    """

    def __init__(
        self,
        media_store: MediaStore,
        *,
        http_client: httpx.AsyncClient | None = None,
        media_timeout: float = 30.0,
        retry: RetryConfig | None = None,
    ) -> None:
        self.media_store = media_store
        self.media_timeout = media_timeout
        self._http_client = http_client
        self._retry = create_retry_decorator(retry or RetryConfig())

    @staticmethod
    def flatten(item: Any, public_hostname: str) -> dict[str, Any] | None:
        """Reduce a populated media record to its exported form.

        Example:
            >>> MediaHandler.flatten({"id": 3, "url": "/uploads/a.png", "name": "a.png"},
            ...                      "https://cms.example.com")["url"]
            'https://cms.example.com/uploads/a.png'
        """
        if not isinstance(item, dict):
            return None
        flattened = {field: item.get(field) for field in MEDIA_FIELDS}
        url = flattened["url"]
        if isinstance(url, str) and public_hostname:
            flattened["url"] = to_absolute_url(public_hostname, url)
        return flattened

    async def find_or_import(
        self,
        entry: Any,
        allowed_types: tuple[str, ...] | list[str] | None = None,
    ) -> dict[str, Any] | None:
        """Resolve an exported media value to a media library file.

        Args:
            entry: Exported media dict, or a bare URL string
            allowed_types: The media attribute's ``allowedTypes``

        Returns:
            The stored file record, or None when the existing or fetched file
            has a disallowed extension or the value carries nothing to import

        Raises:
            MediaError: If the value is malformed or the download/upload fails
        """
        if isinstance(entry, str):
            media: dict[str, Any] = {"url": entry}
        elif isinstance(entry, dict):
            media = dict(entry)
        else:
            raise MediaError(
                f"Invalid data format '{type(entry).__name__}' to import media. "
                f"Only 'string' and 'object' are accepted."
            )

        file = await self._find_existing(media.get("hash"), media.get("name"))
        if file is not None:
            return file if self._allowed(file, allowed_types) else None

        url = media.get("url")
        if not url:
            return None
        if not is_absolute_url(url):
            logger.debug(f"Skipping URL processing for relative URL: {url}")
            return None

        file_data = file_data_from_url(url)
        if not is_extension_allowed(file_data.extension, allowed_types):
            logger.debug(f"Extension {file_data.extension!r} not allowed for {url}")
            return None

        file = await self._find_existing(file_data.hash, file_data.name)
        if file is not None:
            return file if self._allowed(file, allowed_types) else None

        content, mime = await self._fetch(url)
        return await self.media_store.upload_file(
            content,
            filename=file_data.name,
            mime=mime,
            file_info={
                "name": media.get("name") or file_data.name,
                "alternativeText": media.get("alternativeText") or "",
                "caption": media.get("caption") or "",
            },
        )

    async def _find_existing(self, hash: str | None, name: str | None) -> dict[str, Any] | None:
        if not hash and not name:
            return None
        if hash:
            file = await self.media_store.find_file(hash=hash)
            if file is not None:
                return file
        if name:
            return await self.media_store.find_file(name=name)
        return None

    @staticmethod
    def _allowed(file: dict[str, Any], allowed_types: tuple[str, ...] | list[str] | None) -> bool:
        ext = file.get("ext") or ""
        if not ext:
            return True
        return is_extension_allowed(ext, allowed_types)

    async def _fetch(self, url: str) -> tuple[bytes, str | None]:
        """Download ``url`` with a bounded timeout and transient-failure retries.

        Raises:
            MediaError: If the download fails
        """

        @self._retry
        async def _download(client: httpx.AsyncClient) -> httpx.Response:
            try:
                response = await client.get(url, timeout=self.media_timeout, follow_redirects=True)
            except httpx.TransportError as e:
                raise NetworkError(f"Failed to fetch {url}: {e}") from e
            if response.status_code >= 500:
                raise ServerError(
                    f"Server error fetching {url}", status_code=response.status_code
                )
            return response

        try:
            if self._http_client is not None:
                response = await _download(self._http_client)
            else:
                async with httpx.AsyncClient() as client:
                    response = await _download(client)
        except (NetworkError, ServerError) as e:
            raise MediaError(
                f"Tried to fetch file from url {url} but failed with error: {e}"
            ) from e

        if not response.is_success:
            raise MediaError(
                f"Tried to fetch file from url {url} but failed with HTTP {response.status_code}"
            )

        mime = response.headers.get("content-type", "").split(";")[0].strip() or None
        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return response.content, mime
