"""Protocol state machine: maps decoded messages to responses."""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp import types as mcp_types
from pydantic import ValidationError

from dhan_mcp import __version__
from dhan_mcp.registry import (
    ActionRegistry,
    DomainFailure,
    InvalidArguments,
    Ok,
    OtherFailure,
    Outcome,
)
from dhan_mcp.schemas import (
    PROTOCOL_VERSION,
    CallToolParams,
    ErrorCode,
    ErrorObject,
    ErrorResponse,
    Method,
    ResultResponse,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "dhan-mcp"


def is_notification(message: dict[str, Any]) -> bool:
    """A message without an id (or with a null id) expects no response."""
    return message.get("id") is None


def result_response(request_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return ResultResponse(id=request_id, result=result).model_dump()


def error_response(
    request_id: Any,
    code: ErrorCode,
    message: str,
    data: Any = None,
) -> dict[str, Any]:
    error = ErrorObject(code=int(code), message=message, data=data)
    response = ErrorResponse(id=request_id, error=error).model_dump()
    if data is None:
        response["error"].pop("data")
    return response


def text_content(value: Any) -> dict[str, Any]:
    """Wrap a tool result as a single pretty-printed text content item."""
    text = json.dumps(value, indent=2, ensure_ascii=False)
    item = mcp_types.TextContent(type="text", text=text)
    return {"content": [item.model_dump(by_alias=True, exclude_none=True)]}


class Dispatcher:
    """Handles one decoded message at a time.

    Holds no per-connection state; every message is interpreted on its own.
    """

    def __init__(self, registry: ActionRegistry, server_version: str = __version__):
        self.registry = registry
        self.server_version = server_version

    def initialize_result(self) -> dict[str, Any]:
        server_info = mcp_types.Implementation(name=SERVER_NAME, version=self.server_version)
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "serverInfo": server_info.model_dump(by_alias=True, exclude_none=True),
            "capabilities": {"tools": {}},
        }

    async def handle(self, message: Any) -> dict[str, Any] | None:
        """Dispatch one message.

        Args:
            message: A decoded JSON value

        Returns:
            The response to write, or None for notifications and messages
            that cannot be correlated to a request id
        """
        if not isinstance(message, dict):
            logger.error(f"Dropping non-object message: {type(message).__name__}")
            return None

        request_id = message.get("id")
        method = message.get("method")

        if is_notification(message):
            if method != Method.INITIALIZED.value:
                logger.warning(f"Ignoring notification for method {method!r}")
            return None

        try:
            return await self._handle_request(request_id, method, message.get("params"))
        except Exception as e:
            logger.error(f"Unhandled failure for request {request_id!r}: {e}", exc_info=True)
            return error_response(request_id, ErrorCode.INTERNAL_ERROR, str(e) or "Internal error")

    async def _handle_request(self, request_id: Any, method: Any, params: Any) -> dict[str, Any]:
        if not isinstance(method, str):
            return error_response(request_id, ErrorCode.INVALID_REQUEST, "Request is missing a method")

        logger.debug(f"Request {request_id!r}: {method}")

        if method == Method.INITIALIZE.value:
            return result_response(request_id, self.initialize_result())

        if method == Method.TOOLS_LIST.value:
            return result_response(request_id, {"tools": self.registry.list_tools()})

        if method == Method.TOOLS_CALL.value:
            return await self._call_tool(request_id, params)

        return error_response(request_id, ErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}")

    async def _call_tool(self, request_id: Any, params: Any) -> dict[str, Any]:
        try:
            call = CallToolParams.model_validate(params if params is not None else {})
        except ValidationError:
            return error_response(request_id, ErrorCode.INVALID_PARAMS, "tools/call params must be an object")

        if call.name not in self.registry:
            return error_response(request_id, ErrorCode.INVALID_REQUEST, f"Unknown tool: {call.name}")

        arguments = call.arguments if call.arguments is not None else {}
        outcome = await self.registry.invoke(call.name, arguments)
        return self._outcome_response(request_id, outcome)

    def _outcome_response(self, request_id: Any, outcome: Outcome) -> dict[str, Any]:
        if isinstance(outcome, Ok):
            return result_response(request_id, text_content(outcome.value))
        if isinstance(outcome, InvalidArguments):
            return error_response(
                request_id,
                ErrorCode.INVALID_PARAMS,
                outcome.message,
                {"field": outcome.field},
            )
        if isinstance(outcome, DomainFailure):
            return error_response(
                request_id,
                ErrorCode.DOMAIN_ERROR,
                outcome.message,
                {"status": outcome.status, "payload": outcome.payload},
            )
        if isinstance(outcome, OtherFailure):
            return error_response(request_id, ErrorCode.INTERNAL_ERROR, outcome.message)
        raise TypeError(f"Unexpected outcome: {outcome!r}")
