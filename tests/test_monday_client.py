"""
Tests for the Monday.com API client
"""
import json

import httpx
import pytest

from batchcode.exceptions import RemoteApiError
from batchcode.services.monday_client import MondayClient


def make_client(handler) -> MondayClient:
    transport = httpx.MockTransport(handler)
    return MondayClient(
        api_key="secret-key",
        api_url="https://api.monday.test/v2",
        client=httpx.AsyncClient(transport=transport)
    )


class TestUpdateItemColumn:

    async def test_sends_change_column_value_mutation(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"data": {"change_column_value": {"id": "123"}}})

        client = make_client(handler)
        await client.update_item_column("456", "123", "text_batch", "TP6YM")
        await client.aclose()

        [request] = requests
        assert request.url == "https://api.monday.test/v2"
        assert request.headers["Authorization"] == "Bearer secret-key"
        assert request.headers["API-Version"] == "2023-10"
        body = json.loads(request.content)
        assert "change_column_value" in body["query"]
        assert body["variables"] == {
            "boardId": "456",
            "itemId": "123",
            "columnId": "text_batch",
            "value": '"TP6YM"',
        }

    async def test_http_error_status(self):
        client = make_client(lambda request: httpx.Response(401, text="Not Authenticated"))

        with pytest.raises(RemoteApiError) as exc_info:
            await client.update_item_column("456", "123", "text_batch", "TP6YM")

        assert exc_info.value.status == 401

    async def test_graphql_errors(self):
        client = make_client(
            lambda request: httpx.Response(200, json={"errors": [{"message": "Column not found"}]})
        )

        with pytest.raises(RemoteApiError) as exc_info:
            await client.update_item_column("456", "123", "missing", "TP6YM")

        assert "Column not found" in exc_info.value.message
        assert exc_info.value.status == 200

    async def test_error_message_payload(self):
        client = make_client(
            lambda request: httpx.Response(
                200, json={"error_code": "InvalidColumnIdException", "error_message": "bad column"}
            )
        )

        with pytest.raises(RemoteApiError) as exc_info:
            await client.update_item_column("456", "123", "missing", "TP6YM")

        assert "InvalidColumnIdException" in exc_info.value.message

    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(RemoteApiError) as exc_info:
            await client.update_item_column("456", "123", "text_batch", "TP6YM")

        assert exc_info.value.status is None


class TestGetItem:

    async def test_returns_snapshot(self):
        def handler(request):
            body = json.loads(request.content)
            assert body["variables"] == {"itemIds": ["123"]}
            return httpx.Response(200, json={"data": {"items": [{
                "id": "123",
                "name": "Widget",
                "board": {"id": "456", "name": "Production"},
                "group": {"id": "g1", "title": "New"},
                "column_values": [{"id": "text_batch", "text": "TP6YM", "value": "\"TP6YM\""}],
            }]}})

        item = await make_client(handler).get_item("123")

        assert item.name == "Widget"
        assert item.board_id == "456"
        assert item.group_title == "New"
        assert item.column_values[0].text == "TP6YM"

    async def test_missing_item(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": {"items": []}}))

        with pytest.raises(RemoteApiError) as exc_info:
            await client.get_item("999")

        assert exc_info.value.status == 404


class TestConnection:

    async def test_connection_ok(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": {"me": {"id": "1", "name": "Bot"}}}))

        assert await client.test_connection() is True

    async def test_connection_failure_returns_false(self):
        client = make_client(lambda request: httpx.Response(500, text="boom"))

        assert await client.test_connection() is False

    async def test_transport_failure_returns_false(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert await make_client(handler).test_connection() is False
