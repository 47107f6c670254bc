"""Async Notion API client for page creation and database queries."""

from typing import Any

import httpx
import structlog

from notion_mirror.models.config import NotionConfig
from notion_mirror.utils.retry import async_exponential_backoff_retry

log = structlog.stdlib.get_logger()


class NotionApiError(RuntimeError):
    """Raised when the Notion API rejects a request."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class NotionRateLimitError(NotionApiError):
    """HTTP 429 from Notion; ``retry_after`` is honored by the retry decorator."""

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message, status_code=429, code="rate_limited")
        self.retry_after = retry_after


class NotionTransientError(NotionApiError):
    """5xx response or transport failure that is worth retrying."""


class NotionClient:
    """Thin wrapper over the Notion REST API using httpx.AsyncClient."""

    def __init__(self, config: NotionConfig, http_client: httpx.AsyncClient | None = None):
        """
        Initialize Notion client.

        Args:
            config: Notion connection settings
            http_client: Optional preconfigured client (tests pass a MockTransport)
        """
        self._config = config
        self._client = http_client or httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=config.request_timeout_seconds,
        )
        self._headers = {
            "Authorization": f"Bearer {config.api_token}",
            "Notion-Version": config.notion_version,
            "Content-Type": "application/json",
        }

        retry = async_exponential_backoff_retry(
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay_seconds,
            max_delay=config.retry_max_delay_seconds,
            exceptions=(NotionRateLimitError, NotionTransientError),
        )
        self._request_with_retry = retry(self._request)

        log.info(
            "notion_client_initialized",
            api_base_url=config.api_base_url,
            notion_version=config.notion_version,
        )

    async def __aenter__(self) -> "NotionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_page(
        self,
        database_id: str,
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """
        Create a page in a database.

        Args:
            database_id: Parent database identifier
            properties: Page properties keyed by property name
            children: Optional block objects appended as page content

        Returns:
            The created page object

        Raises:
            NotionApiError: If the request is rejected or retries are exhausted
        """
        payload: dict[str, Any] = {
            "parent": {"database_id": database_id},
            "properties": properties,
        }
        if children:
            payload["children"] = children

        return await self._request_with_retry("POST", "/pages", payload)

    async def append_block_children(
        self, block_id: str, children: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """
        Append blocks to the end of a page or block.

        Args:
            block_id: Page or block identifier
            children: At most 100 block objects

        Returns:
            List response with the appended blocks
        """
        return await self._request_with_retry(
            "PATCH", f"/blocks/{block_id}/children", {"children": children}
        )

    async def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        page_size: int = 100,
    ) -> dict[str, Any]:
        """
        Query a database, returning the first page of results.

        Args:
            database_id: Database identifier
            filter: Notion filter object
            page_size: Maximum results to return (1-100)

        Returns:
            Query response with ``results`` and ``has_more``
        """
        payload: dict[str, Any] = {"page_size": page_size}
        if filter:
            payload["filter"] = filter

        return await self._request_with_retry(
            "POST", f"/databases/{database_id}/query", payload
        )

    async def _request(self, method: str, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method, path, json=payload, headers=self._headers
            )
        except httpx.TimeoutException as e:
            raise NotionTransientError(f"Notion request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            raise NotionTransientError(f"Notion transport error: {e}") from e

        if response.is_success:
            return response.json()

        code, message = self._parse_error(response)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise NotionRateLimitError(
                f"Notion rate limit hit: {message}",
                retry_after=float(retry_after) if retry_after else None,
            )

        if response.status_code >= 500:
            raise NotionTransientError(
                f"Notion server error {response.status_code}: {message}",
                status_code=response.status_code,
                code=code,
            )

        raise NotionApiError(
            f"Notion rejected {method} {path} ({response.status_code} {code}): {message}",
            status_code=response.status_code,
            code=code,
        )

    @staticmethod
    def _parse_error(response: httpx.Response) -> tuple[str | None, str]:
        try:
            body = response.json()
        except ValueError:
            return None, response.text
        return body.get("code"), body.get("message", response.text)
