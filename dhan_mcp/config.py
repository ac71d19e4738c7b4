"""Typed configuration for the Dhan MCP server, read once from the environment."""

from __future__ import annotations

import logging

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.dhan.co/v2"
DEFAULT_TIMEOUT_MS = 15000
DEFAULT_MAX_ORDER_QUANTITY = 10000
DEFAULT_MAX_IN_FLIGHT = 16


class ConfigError(Exception):
    """Raised when the environment holds missing or malformed settings."""

    def __init__(self, problems: list[str]):
        super().__init__("Invalid configuration: " + "; ".join(problems))
        self.problems = problems


class Settings(BaseSettings):
    """Server settings, each field bound to its environment variable.

    Empty variables count as unset. Booleans accept the usual spellings
    (true/false, 1/0, yes/no, on/off); anything else is a validation error.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = Field(default=DEFAULT_BASE_URL, min_length=1, validation_alias="DHAN_BASE_URL")
    access_token: str = Field(..., min_length=1, validation_alias="DHAN_ACCESS_TOKEN")
    client_id: str = Field(..., min_length=1, validation_alias="DHAN_CLIENT_ID")
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0, validation_alias="DHAN_TIMEOUT_MS")
    enable_trading_tools: bool = Field(default=False, validation_alias="ENABLE_TRADING_TOOLS")
    max_order_quantity: int = Field(
        default=DEFAULT_MAX_ORDER_QUANTITY, gt=0, validation_alias="MAX_ORDER_QUANTITY"
    )
    max_in_flight: int = Field(default=DEFAULT_MAX_IN_FLIGHT, gt=0, validation_alias="DHAN_MAX_IN_FLIGHT")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def masked(self) -> dict[str, object]:
        """Settings as a dict with the access token hidden."""
        data = self.model_dump()
        token = data["access_token"]
        data["access_token"] = f"{token[:4]}..." if len(token) > 8 else "***"
        return data


def load_settings() -> Settings:
    """Build Settings from environment variables.

    Malformed values are never silently replaced: every problem is
    collected and reported together.

    Returns:
        Validated, frozen Settings

    Raises:
        ConfigError: If any variable is missing or malformed
    """
    try:
        settings = Settings()
    except ValidationError as e:
        problems = []
        for error in e.errors():
            var = str(error["loc"][0]) if error["loc"] else "environment"
            if error["type"] == "missing":
                problems.append(f"{var} is required")
            else:
                problems.append(f"{var}={error.get('input')!r}: {error['msg']}")
        raise ConfigError(problems) from e

    logger.debug(f"Loaded settings for client {settings.client_id}")
    return settings
