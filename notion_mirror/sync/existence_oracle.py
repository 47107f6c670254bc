"""Duplicate detection against the Notion database."""

import asyncio
from enum import Enum

import structlog

from notion_mirror.remote.notion_client import NotionClient

log = structlog.stdlib.get_logger()


class ExistenceCheck(str, Enum):
    """Outcome of one remote lookup."""

    EXISTS = "exists"
    MISSING = "missing"
    UNKNOWN = "unknown"


class ExistenceOracle:
    """Answers whether a page with a given locator already exists remotely.

    The check is best-effort. ``check`` reports a failed lookup as UNKNOWN;
    ``exists`` folds UNKNOWN into a boolean using ``fail_open``: True treats
    the record as new (a duplicate page may be written), False treats it as
    not deliverable this pass.
    """

    def __init__(
        self,
        notion_client: NotionClient,
        database_id: str,
        locator_property: str,
        fail_open: bool = True,
        timeout_seconds: float | None = None,
    ):
        self._client = notion_client
        self._database_id = database_id
        self._locator_property = locator_property
        self._fail_open = fail_open
        self._timeout_seconds = timeout_seconds

    @property
    def fail_open(self) -> bool:
        return self._fail_open

    async def check(self, locator: str) -> ExistenceCheck:
        """Look up ``locator``; any query failure yields UNKNOWN."""
        query_filter = {
            "property": self._locator_property,
            "rich_text": {"equals": locator},
        }

        try:
            response = await asyncio.wait_for(
                self._client.query_database(self._database_id, query_filter, page_size=1),
                timeout=self._timeout_seconds,
            )
        except Exception as e:
            log.warning(
                "existence_check_failed",
                locator=locator,
                fail_open=self._fail_open,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ExistenceCheck.UNKNOWN

        if response.get("results"):
            log.debug("remote_duplicate_found", locator=locator)
            return ExistenceCheck.EXISTS
        return ExistenceCheck.MISSING

    async def exists(self, locator: str) -> bool:
        """Return True if a page whose locator property equals ``locator`` exists."""
        result = await self.check(locator)
        if result == ExistenceCheck.UNKNOWN:
            return not self._fail_open
        return result == ExistenceCheck.EXISTS
