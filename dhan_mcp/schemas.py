"""Pydantic schemas for the JSON-RPC wire contract and Dhan tool inputs."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, Literal

from mcp import types as mcp_types
from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"


class ErrorCode(IntEnum):
    """JSON-RPC error codes returned by the server."""

    PARSE_ERROR = mcp_types.PARSE_ERROR
    INVALID_REQUEST = mcp_types.INVALID_REQUEST
    METHOD_NOT_FOUND = mcp_types.METHOD_NOT_FOUND
    INVALID_PARAMS = mcp_types.INVALID_PARAMS
    INTERNAL_ERROR = mcp_types.INTERNAL_ERROR
    # Reported by the Dhan API itself
    DOMAIN_ERROR = -32000


class Method(str, Enum):
    """Protocol methods understood by the dispatcher."""

    INITIALIZE = "initialize"
    INITIALIZED = "notifications/initialized"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


class ToolName(str, Enum):
    """Tools exposed over the protocol."""

    GET_PROFILE = "get_profile"
    GET_FUNDS = "get_funds"
    GET_POSITIONS = "get_positions"
    GET_HOLDINGS = "get_holdings"
    GET_HISTORICAL_CHARTS = "get_historical_charts"
    GET_ORDER_BY_ID = "get_order_by_id"
    PLACE_ORDER = "place_order"
    CANCEL_ORDER = "cancel_order"


class Instrument(str, Enum):
    """Instrument classes accepted by the historical charts API."""

    EQUITY = "EQUITY"
    FUTIDX = "FUTIDX"
    FUTCOM = "FUTCOM"
    FUTCUR = "FUTCUR"
    OPTIDX = "OPTIDX"
    OPTCUR = "OPTCUR"
    OPTFUT = "OPTFUT"
    OPTSTK = "OPTSTK"
    INDEX = "INDEX"


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class ProductType(str, Enum):
    CNC = "CNC"
    INTRADAY = "INTRADAY"
    MARGIN = "MARGIN"
    MTF = "MTF"


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    SL = "SL"
    SL_M = "SL-M"


class Validity(str, Enum):
    DAY = "DAY"
    IOC = "IOC"


EXPIRY_CODES = [0, 1, 2, 3]


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Return the wire values of a string enum, in declaration order."""
    return [member.value for member in enum_cls]


# --- Wire messages ---


# str, int or float on the wire; echoed back unchanged
RequestId = Any


class ErrorObject(BaseModel):
    """Error member of a JSON-RPC error response."""

    code: int
    message: str
    data: Any | None = None


class ResultResponse(BaseModel):
    """Successful JSON-RPC response."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId
    result: dict[str, Any]


class ErrorResponse(BaseModel):
    """Failed JSON-RPC response."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId
    error: ErrorObject


class CallToolParams(BaseModel):
    """Params of a tools/call request.

    ``arguments`` is kept untyped; each tool validates its own shape.
    """

    model_config = ConfigDict(extra="allow")

    name: Any = None
    arguments: Any = Field(default=None)
