"""Dhan tool descriptors: schemas, argument validators and executors."""

from __future__ import annotations

from typing import Any

from dhan_mcp.client import DhanClient
from dhan_mcp.registry import ActionDescriptor, ActionRegistry
from dhan_mcp.schemas import (
    EXPIRY_CODES,
    Instrument,
    OrderType,
    ProductType,
    ToolName,
    TransactionType,
    Validity,
    enum_values,
)
from dhan_mcp.validators import (
    require_boolean,
    require_date,
    require_non_negative_number,
    require_one_of,
    require_positive_int,
    require_string,
)

NO_ARGUMENTS_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}

ORDER_ID_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["order_id"],
    "properties": {"order_id": {"type": "string"}},
}

HISTORICAL_CHARTS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": [
        "security_id",
        "exchange_segment",
        "instrument",
        "expiry_code",
        "from_date",
        "to_date",
    ],
    "properties": {
        "security_id": {"type": "string"},
        "exchange_segment": {"type": "string"},
        "instrument": {"type": "string", "enum": enum_values(Instrument)},
        "expiry_code": {"type": "integer", "enum": EXPIRY_CODES},
        "from_date": {"type": "string", "description": "YYYY-MM-DD"},
        "to_date": {"type": "string", "description": "YYYY-MM-DD"},
        "oi": {"type": "boolean"},
    },
}


def _place_order_schema(max_quantity: int) -> dict[str, Any]:
    return {
        "type": "object",
        "required": [
            "dhan_exchange_segment",
            "transaction_type",
            "product_type",
            "order_type",
            "security_id",
            "quantity",
        ],
        "properties": {
            "dhan_exchange_segment": {"type": "string"},
            "transaction_type": {"type": "string", "enum": enum_values(TransactionType)},
            "product_type": {"type": "string", "enum": enum_values(ProductType)},
            "order_type": {"type": "string", "enum": enum_values(OrderType)},
            "validity": {"type": "string", "enum": enum_values(Validity)},
            "security_id": {"type": "string"},
            "quantity": {"type": "integer", "minimum": 1, "maximum": max_quantity},
            "price": {"type": "number", "minimum": 0},
            "trigger_price": {"type": "number", "minimum": 0},
        },
    }


# --- Validators ---


def validate_no_arguments(params: dict[str, Any]) -> None:
    """Read-only account queries take no arguments; extras are ignored."""


def validate_order_id(params: dict[str, Any]) -> None:
    require_string(params.get("order_id"), "order_id")


def validate_historical_charts(params: dict[str, Any]) -> None:
    require_string(params.get("security_id"), "security_id")
    require_string(params.get("exchange_segment"), "exchange_segment")
    require_one_of(params.get("instrument"), enum_values(Instrument), "instrument")
    require_one_of(params.get("expiry_code"), EXPIRY_CODES, "expiry_code")
    require_date(params.get("from_date"), "from_date")
    require_date(params.get("to_date"), "to_date")
    if "oi" in params:
        require_boolean(params["oi"], "oi")


def make_place_order_validator(max_quantity: int):
    """Build the place_order validator with the configured quantity ceiling."""

    def validate_place_order(params: dict[str, Any]) -> None:
        require_string(params.get("dhan_exchange_segment"), "dhan_exchange_segment")
        require_one_of(params.get("transaction_type"), enum_values(TransactionType), "transaction_type")
        require_one_of(params.get("product_type"), enum_values(ProductType), "product_type")
        require_one_of(params.get("order_type"), enum_values(OrderType), "order_type")
        require_one_of(params.get("validity", Validity.DAY.value), enum_values(Validity), "validity")
        require_string(params.get("security_id"), "security_id")
        require_positive_int(params.get("quantity"), "quantity", max_quantity)
        if "price" in params:
            require_non_negative_number(params["price"], "price")
        if "trigger_price" in params:
            require_non_negative_number(params["trigger_price"], "trigger_price")

    return validate_place_order


# --- Registry assembly ---


def build_descriptors(client: DhanClient, max_order_quantity: int) -> list[ActionDescriptor]:
    """Build the fixed, ordered list of Dhan tools bound to ``client``."""

    async def get_profile(params: dict[str, Any]) -> dict[str, Any]:
        return {"ok": True, "profile": await client.get_profile()}

    async def get_funds(params: dict[str, Any]) -> dict[str, Any]:
        return {"ok": True, "funds": await client.get_funds()}

    async def get_positions(params: dict[str, Any]) -> dict[str, Any]:
        return {"ok": True, "positions": await client.get_positions()}

    async def get_holdings(params: dict[str, Any]) -> dict[str, Any]:
        return {"ok": True, "holdings": await client.get_holdings()}

    async def get_historical_charts(params: dict[str, Any]) -> dict[str, Any]:
        return {"ok": True, "charts": await client.get_historical_charts(params)}

    async def get_order_by_id(params: dict[str, Any]) -> dict[str, Any]:
        order_id = params["order_id"]
        return {"ok": True, "order_id": order_id, "order": await client.get_order_by_id(order_id)}

    async def place_order(params: dict[str, Any]) -> dict[str, Any]:
        order = await client.place_order(params)
        return {"ok": True, "message": "Order placed successfully", "order": order}

    async def cancel_order(params: dict[str, Any]) -> dict[str, Any]:
        order_id = params["order_id"]
        response = await client.cancel_order(order_id)
        return {"ok": True, "message": f"Order {order_id} cancelled successfully", "response": response}

    return [
        ActionDescriptor(
            name=ToolName.GET_PROFILE.value,
            description="Fetch Dhan account profile details.",
            input_schema=NO_ARGUMENTS_SCHEMA,
            validate=validate_no_arguments,
            execute=get_profile,
        ),
        ActionDescriptor(
            name=ToolName.GET_FUNDS.value,
            description="Fetch Dhan funds/limits.",
            input_schema=NO_ARGUMENTS_SCHEMA,
            validate=validate_no_arguments,
            execute=get_funds,
        ),
        ActionDescriptor(
            name=ToolName.GET_POSITIONS.value,
            description="Fetch open and closed positions.",
            input_schema=NO_ARGUMENTS_SCHEMA,
            validate=validate_no_arguments,
            execute=get_positions,
        ),
        ActionDescriptor(
            name=ToolName.GET_HOLDINGS.value,
            description="Fetch demat holdings.",
            input_schema=NO_ARGUMENTS_SCHEMA,
            validate=validate_no_arguments,
            execute=get_holdings,
        ),
        ActionDescriptor(
            name=ToolName.GET_HISTORICAL_CHARTS.value,
            description="Fetch historical candle chart data from Dhan historical charts API.",
            input_schema=HISTORICAL_CHARTS_SCHEMA,
            validate=validate_historical_charts,
            execute=get_historical_charts,
        ),
        ActionDescriptor(
            name=ToolName.GET_ORDER_BY_ID.value,
            description="Fetch a specific order by order_id.",
            input_schema=ORDER_ID_SCHEMA,
            validate=validate_order_id,
            execute=get_order_by_id,
        ),
        ActionDescriptor(
            name=ToolName.PLACE_ORDER.value,
            description="Place a Dhan order. Disabled unless ENABLE_TRADING_TOOLS=true.",
            input_schema=_place_order_schema(max_order_quantity),
            validate=make_place_order_validator(max_order_quantity),
            execute=place_order,
            gated_action="order placement",
        ),
        ActionDescriptor(
            name=ToolName.CANCEL_ORDER.value,
            description="Cancel an existing order. Disabled unless ENABLE_TRADING_TOOLS=true.",
            input_schema=ORDER_ID_SCHEMA,
            validate=validate_order_id,
            execute=cancel_order,
            gated_action="cancellation",
        ),
    ]


def build_registry(
    client: DhanClient,
    max_order_quantity: int,
    trading_enabled: bool,
) -> ActionRegistry:
    """Assemble the tool registry once at startup."""
    return ActionRegistry(
        build_descriptors(client, max_order_quantity),
        trading_enabled=trading_enabled,
    )
