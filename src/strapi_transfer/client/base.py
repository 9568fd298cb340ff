"""HTTP plumbing shared by the REST store.

Authentication headers, URL building, status-code to exception mapping and
the tenacity retry policy.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    StoreError,
    ValidationError,
)
from ..models.config import RetryConfig, TransferConfig

logger = logging.getLogger(__name__)


def create_retry_decorator(retry_config: RetryConfig) -> Any:
    """Build a tenacity retry decorator for transient store failures.

    Only ``ServerError`` and ``NetworkError`` are retried; client errors are
    raised on the first attempt.
    """
    return retry(
        stop=stop_after_attempt(retry_config.max_attempts),
        wait=wait_exponential(
            multiplier=retry_config.exponential_base,
            min=retry_config.initial_wait,
            max=retry_config.max_wait,
        ),
        retry=retry_if_exception_type((ServerError, NetworkError)),
        reraise=True,
    )


def raise_for_response(response: httpx.Response) -> None:
    """Raise the StoreError subclass matching an unsuccessful response.

    Raises:
        StoreError: Subclass chosen by status code
    """
    status_code = response.status_code

    try:
        error_data = response.json()
        error_message = error_data.get("error", {}).get("message", response.text)
        error_details = error_data.get("error", {}).get("details", {})
    except (ValueError, AttributeError):
        error_message = response.text or f"HTTP {status_code}"
        error_details = {}

    if status_code == 401:
        raise AuthenticationError(f"Authentication failed: {error_message}", details=error_details)
    elif status_code == 403:
        raise AuthorizationError(f"Authorization failed: {error_message}", details=error_details)
    elif status_code == 404:
        raise NotFoundError(f"Resource not found: {error_message}", details=error_details)
    elif status_code == 400:
        raise ValidationError(f"Validation error: {error_message}", details=error_details)
    elif status_code == 409:
        raise ConflictError(f"Conflict: {error_message}", details=error_details)
    elif status_code == 429:
        retry_after = response.headers.get("Retry-After")
        raise RateLimitError(
            f"Rate limit exceeded: {error_message}",
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            details=error_details,
        )
    elif 500 <= status_code < 600:
        raise ServerError(
            f"Server error: {error_message}",
            status_code=status_code,
            details=error_details,
        )
    raise StoreError(
        f"Unexpected error (HTTP {status_code}): {error_message}",
        details=error_details,
    )


class BaseStoreClient:
    """Owns the ``httpx.AsyncClient`` and issues authenticated JSON requests.

    Not intended to be used directly; see ``StrapiRestStore``.
    """

    def __init__(
        self, config: TransferConfig, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.config = config
        self.base_url = config.get_base_url()
        token = config.get_api_token()
        if not token.strip():
            raise ValueError("API token is required and cannot be empty")

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout,
            verify=config.verify_ssl,
            limits=httpx.Limits(
                max_connections=config.max_connections,
                max_keepalive_connections=config.max_connections,
            ),
        )
        self._retry = create_retry_decorator(config.retry)

        logger.info(f"Initialized Strapi REST store for {self.base_url}")

    async def __aenter__(self) -> "BaseStoreClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()
            logger.info("Closed Strapi REST store")

    def _get_headers(self, json_body: bool = True) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.get_api_token()}",
        }
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.strip("/")
        if not endpoint.startswith("api/"):
            endpoint = f"api/{endpoint}"
        return f"{self.base_url}/{endpoint}"

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        files: Any = None,
        data: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request with retries and return the decoded JSON body.

        Raises:
            StoreError: On API errors (after retries for 5xx)
            NetworkError: On connection failures or timeouts
        """

        @self._retry
        async def _send() -> Any:
            url = self._build_url(endpoint)
            logger.debug(f"{method} {url} params={params}")
            try:
                response = await self._client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json,
                    files=files,
                    data=data,
                    headers=self._get_headers(json_body=files is None),
                )
            except httpx.TimeoutException as e:
                raise NetworkError(f"Request timed out after {self.config.timeout}s: {e}") from e
            except httpx.TransportError as e:
                raise NetworkError(f"Failed to connect to {self.base_url}: {e}") from e

            if not response.is_success:
                raise_for_response(response)

            logger.debug(f"Response: {response.status_code}")
            if not response.content:
                return None
            return response.json()

        return await _send()
