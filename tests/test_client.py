"""Tests for the async Dhan HTTP client."""

import json

import httpx
import pytest

from dhan_mcp.client import DhanApiError, DhanClient


def _client(settings, handler) -> DhanClient:
    return DhanClient(settings, transport=httpx.MockTransport(handler))


class TestDhanClientRequests:
    """Test request construction and response decoding."""

    @pytest.mark.asyncio
    async def test_sends_auth_headers(self, settings):
        """Every request carries the access token and client id."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            return httpx.Response(200, json={"dhanClientId": "1000000001"})

        async with _client(settings, handler) as client:
            profile = await client.get_profile()

        assert profile == {"dhanClientId": "1000000001"}
        assert seen["url"] == "https://api.test.dhan.local/v2/profile"
        assert seen["headers"]["access-token"] == "test-access-token"
        assert seen["headers"]["client-id"] == "1000000001"
        assert seen["headers"]["content-type"] == "application/json"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call,method,path",
        [
            ("get_funds", "GET", "/v2/fundlimit"),
            ("get_positions", "GET", "/v2/positions"),
            ("get_holdings", "GET", "/v2/holdings"),
        ],
    )
    async def test_read_endpoints(self, settings, call, method, path):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            return httpx.Response(200, json=[])

        async with _client(settings, handler) as client:
            assert await getattr(client, call)() == []

        assert seen == {"method": method, "path": path}

    @pytest.mark.asyncio
    async def test_place_order_posts_payload(self, settings, valid_order):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"orderId": "1", "orderStatus": "TRANSIT"})

        async with _client(settings, handler) as client:
            result = await client.place_order(valid_order)

        assert result["orderStatus"] == "TRANSIT"
        assert seen["method"] == "POST"
        assert seen["path"] == "/v2/orders"
        assert seen["body"] == valid_order

    @pytest.mark.asyncio
    async def test_order_id_is_path_escaped(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["raw_path"] = request.url.raw_path
            return httpx.Response(200, json={})

        async with _client(settings, handler) as client:
            await client.cancel_order("12/34")

        assert seen["method"] == "DELETE"
        assert seen["raw_path"] == b"/v2/orders/12%2F34"

    @pytest.mark.asyncio
    async def test_empty_body_decodes_to_empty_dict(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(202, content=b"")

        async with _client(settings, handler) as client:
            assert await client.cancel_order("42") == {}


class TestDhanClientErrors:
    """Test domain failure reporting."""

    @pytest.mark.asyncio
    async def test_error_status_raises_with_payload(self, settings):
        payload = {"errorType": "Order_Error", "errorCode": "DH-906", "message": "Order not found"}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json=payload)

        async with _client(settings, handler) as client:
            with pytest.raises(DhanApiError) as exc_info:
                await client.get_order_by_id("missing")

        error = exc_info.value
        assert error.status == 404
        assert error.payload == payload
        assert error.message == "Order not found"

    @pytest.mark.asyncio
    async def test_error_without_message_uses_status(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, content=b"<html>oops</html>")

        async with _client(settings, handler) as client:
            with pytest.raises(DhanApiError) as exc_info:
                await client.get_funds()

        assert exc_info.value.status == 500
        assert exc_info.value.payload == {}
        assert str(exc_info.value) == "Dhan request failed with status 500"

    @pytest.mark.asyncio
    async def test_timeout_becomes_408(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(settings, handler) as client:
            with pytest.raises(DhanApiError) as exc_info:
                await client.get_holdings()

        assert exc_info.value.status == 408
        assert exc_info.value.payload == {}
        assert str(exc_info.value) == "Dhan request timed out"

    @pytest.mark.asyncio
    async def test_connection_error_propagates(self, settings):
        """Transport failures other than timeouts are not domain failures."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(settings, handler) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get_profile()
