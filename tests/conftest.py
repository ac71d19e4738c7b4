"""Pytest configuration and fixtures for Dhan MCP tests."""

from unittest.mock import MagicMock

import pytest

from dhan_mcp.client import DhanClient
from dhan_mcp.config import Settings
from dhan_mcp.dispatcher import Dispatcher
from dhan_mcp.tools import build_registry

MAX_QUANTITY = 100


@pytest.fixture
def settings() -> Settings:
    """Settings with test credentials and a small order ceiling."""
    return Settings(
        access_token="test-access-token",
        client_id="1000000001",
        base_url="https://api.test.dhan.local/v2",
        timeout_ms=2000,
        enable_trading_tools=False,
        max_order_quantity=MAX_QUANTITY,
        max_in_flight=16,
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """DhanClient stand-in; every endpoint is an AsyncMock."""
    client = MagicMock(spec=DhanClient)
    client.get_profile.return_value = {"dhanClientId": "1000000001", "name": "Test User"}
    client.get_funds.return_value = {"availabelBalance": 1500.5}
    client.get_positions.return_value = []
    client.get_holdings.return_value = [{"tradingSymbol": "INFY", "totalQty": 10}]
    client.get_order_by_id.return_value = {"orderId": "112111182198", "orderStatus": "PENDING"}
    client.place_order.return_value = {"orderId": "112111182045", "orderStatus": "TRANSIT"}
    client.cancel_order.return_value = {"orderId": "112111182045", "orderStatus": "CANCELLED"}
    client.get_historical_charts.return_value = {"open": [100.0], "close": [101.5]}
    return client


@pytest.fixture
def registry(mock_client):
    """Registry with trading disabled."""
    return build_registry(mock_client, max_order_quantity=MAX_QUANTITY, trading_enabled=False)


@pytest.fixture
def trading_registry(mock_client):
    """Registry with trading enabled."""
    return build_registry(mock_client, max_order_quantity=MAX_QUANTITY, trading_enabled=True)


@pytest.fixture
def dispatcher(registry) -> Dispatcher:
    return Dispatcher(registry)


@pytest.fixture
def trading_dispatcher(trading_registry) -> Dispatcher:
    return Dispatcher(trading_registry)


@pytest.fixture
def valid_order() -> dict:
    """A well-formed place_order payload."""
    return {
        "dhan_exchange_segment": "NSE_EQ",
        "transaction_type": "BUY",
        "product_type": "CNC",
        "order_type": "LIMIT",
        "validity": "DAY",
        "security_id": "1333",
        "quantity": 5,
        "price": 1620.5,
    }


@pytest.fixture
def valid_chart_request() -> dict:
    """A well-formed get_historical_charts payload."""
    return {
        "security_id": "1333",
        "exchange_segment": "NSE_EQ",
        "instrument": "EQUITY",
        "expiry_code": 0,
        "from_date": "2024-01-01",
        "to_date": "2024-02-01",
    }
