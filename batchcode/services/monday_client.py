"""
Monday.com API client.

Thin GraphQL client over httpx. Every call is a single request/response;
retries are left to the caller.
"""
import json
from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from batchcode.exceptions import RemoteApiError

logger = structlog.get_logger()

DEFAULT_API_URL = "https://api.monday.com/v2"
DEFAULT_API_VERSION = "2023-10"

CHANGE_COLUMN_VALUE = """
mutation ($boardId: ID!, $itemId: ID!, $columnId: String!, $value: JSON!) {
  change_column_value (
    board_id: $boardId,
    item_id: $itemId,
    column_id: $columnId,
    value: $value
  ) {
    id
  }
}
"""

GET_ITEM = """
query ($itemIds: [ID!]) {
  items (ids: $itemIds) {
    id
    name
    board { id name }
    group { id title }
    column_values { id text value }
  }
}
"""

ME = """
query {
  me { id name }
}
"""


class ColumnSnapshot(BaseModel):
    id: str
    text: str | None = None
    value: Any = None


class ItemSnapshot(BaseModel):
    """Current state of a remote item, for diagnostics."""
    id: str
    name: str | None = None
    board_id: str | None = None
    board_name: str | None = None
    group_id: str | None = None
    group_title: str | None = None
    column_values: list[ColumnSnapshot] = []


class MondayClient:
    """GraphQL client for the Monday.com v2 API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None
    ):
        self.api_url = api_url
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "API-Version": api_version,
        }
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _execute(self, query: str, variables: dict | None = None) -> dict:
        """
        Run one GraphQL operation and return its `data` section.

        Raises RemoteApiError on transport failures, non-2xx responses and
        GraphQL error payloads.
        """
        try:
            response = await self._client.post(
                self.api_url,
                json={"query": query, "variables": variables or {}},
                headers=self._headers
            )
        except httpx.HTTPError as exc:
            logger.error("monday_request_failed", error=str(exc))
            raise RemoteApiError(f"Monday.com request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(
                "monday_http_error",
                status_code=response.status_code,
                body=response.text[:500]
            )
            raise RemoteApiError(
                f"Monday.com API error: {response.status_code} {response.reason_phrase}",
                status=response.status_code
            )

        try:
            result = response.json()
        except ValueError as exc:
            raise RemoteApiError(
                "Monday.com API returned invalid JSON",
                status=response.status_code
            ) from exc

        if result.get("errors"):
            raise RemoteApiError(
                f"Monday.com GraphQL error: {json.dumps(result['errors'])}",
                status=response.status_code
            )
        if result.get("error_message") or result.get("error_code"):
            raise RemoteApiError(
                f"Monday.com GraphQL error: {result.get('error_code')} {result.get('error_message')}",
                status=response.status_code
            )

        return result.get("data") or {}

    async def update_item_column(
        self,
        board_id: str,
        item_id: str,
        column_id: str,
        value: str
    ) -> None:
        """Write `value` into one column of one item."""
        await self._execute(
            CHANGE_COLUMN_VALUE,
            {
                "boardId": str(board_id),
                "itemId": str(item_id),
                "columnId": column_id,
                "value": json.dumps(value),
            }
        )
        logger.info("monday_column_updated", item_id=item_id, board_id=board_id, column_id=column_id)

    async def get_item(self, item_id: str) -> ItemSnapshot:
        """Fetch an item with its column values."""
        data = await self._execute(GET_ITEM, {"itemIds": [str(item_id)]})
        items = data.get("items") or []
        if not items:
            raise RemoteApiError(f"Monday.com item not found: {item_id}", status=404)

        item = items[0]
        board = item.get("board") or {}
        group = item.get("group") or {}
        return ItemSnapshot(
            id=str(item["id"]),
            name=item.get("name"),
            board_id=board.get("id"),
            board_name=board.get("name"),
            group_id=group.get("id"),
            group_title=group.get("title"),
            column_values=[ColumnSnapshot(**column) for column in item.get("column_values") or []],
        )

    async def test_connection(self) -> bool:
        """Identity probe. Returns False instead of raising."""
        try:
            await self._execute(ME)
            return True
        except Exception as exc:
            logger.warning("monday_connection_test_failed", error=str(exc))
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
