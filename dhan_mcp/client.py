"""Async HTTP client for the Dhan trading API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from dhan_mcp.config import Settings

logger = logging.getLogger(__name__)

TIMEOUT_STATUS = 408


class DhanApiError(Exception):
    """Raised when the Dhan API reports a failure.

    Carries the HTTP status and the decoded response payload so callers can
    relay them unchanged.
    """

    def __init__(self, message: str, status: int, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload if payload is not None else {}


class DhanClient:
    """Thin async wrapper over the Dhan REST endpoints."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            settings: Loaded server settings (base URL, credentials, timeout)
            transport: Optional httpx transport, used by tests
        """
        self.base_url = settings.base_url.rstrip("/")
        self.timeout = settings.timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Content-Type": "application/json",
                "access-token": settings.access_token,
                "client-id": settings.client_id,
            },
            timeout=self.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DhanClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        """Send a request and return the decoded JSON payload.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            body: Optional JSON body

        Returns:
            Decoded response payload (an empty dict for empty or non-JSON bodies)

        Raises:
            DhanApiError: On a non-2xx status or a timeout
        """
        logger.debug(f"Dhan request: {method} {path}")
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.TimeoutException as e:
            logger.warning(f"Dhan request timed out after {self.timeout}s: {method} {path}")
            raise DhanApiError("Dhan request timed out", TIMEOUT_STATUS, {}) from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.is_success:
            message = None
            if isinstance(payload, dict):
                message = payload.get("message")
            raise DhanApiError(
                message or f"Dhan request failed with status {response.status_code}",
                response.status_code,
                payload,
            )

        return payload

    async def get_profile(self) -> Any:
        return await self.request("GET", "/profile")

    async def get_funds(self) -> Any:
        return await self.request("GET", "/fundlimit")

    async def get_positions(self) -> Any:
        return await self.request("GET", "/positions")

    async def get_holdings(self) -> Any:
        return await self.request("GET", "/holdings")

    async def get_order_by_id(self, order_id: str) -> Any:
        return await self.request("GET", f"/orders/{quote(order_id, safe='')}")

    async def place_order(self, order_payload: dict[str, Any]) -> Any:
        return await self.request("POST", "/orders", order_payload)

    async def cancel_order(self, order_id: str) -> Any:
        return await self.request("DELETE", f"/orders/{quote(order_id, safe='')}")

    async def get_historical_charts(self, chart_payload: dict[str, Any]) -> Any:
        return await self.request("POST", "/charts/historical", chart_payload)
