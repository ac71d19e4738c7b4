"""CLI for the Dhan MCP server."""

from __future__ import annotations

import json
import logging
import sys

import click

from dhan_mcp import __version__
from dhan_mcp.config import ConfigError, Settings, load_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _configure_logging(level: str) -> None:
    # stdout carries protocol frames; logs must go to stderr
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT, stream=sys.stderr)


def _load_or_exit() -> Settings:
    try:
        return load_settings()
    except ConfigError as e:
        for problem in e.problems:
            click.echo(f"Configuration error: {problem}", err=True)
        sys.exit(2)


@click.group()
@click.version_option(version=__version__, prog_name="dhan-mcp")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    help="Logging level (logs are written to stderr)",
)
def main(log_level: str) -> None:
    """Dhan MCP server - broker tools over the Model Context Protocol.

    Configuration is read from DHAN_ACCESS_TOKEN, DHAN_CLIENT_ID,
    DHAN_BASE_URL, DHAN_TIMEOUT_MS, ENABLE_TRADING_TOOLS, MAX_ORDER_QUANTITY
    and DHAN_MAX_IN_FLIGHT.
    """
    _configure_logging(log_level.upper())


@main.command()
def serve() -> None:
    """Run the MCP server over stdin/stdout.

    \b
    Configure in .mcp.json:
        {
            "mcpServers": {
                "dhan": {
                    "command": "dhan-mcp",
                    "args": ["serve"]
                }
            }
        }
    """
    from dhan_mcp.server import run

    settings = _load_or_exit()
    run(settings)


@main.command()
@click.option("--raw", is_flag=True, help="Output the tools/list payload as JSON")
def tools(raw: bool) -> None:
    """List the tools the server exposes."""
    import asyncio

    from dhan_mcp.client import DhanClient
    from dhan_mcp.tools import build_registry

    settings = _load_or_exit()
    client = DhanClient(settings)
    registry = build_registry(
        client,
        max_order_quantity=settings.max_order_quantity,
        trading_enabled=settings.enable_trading_tools,
    )
    asyncio.run(client.aclose())

    if raw:
        click.echo(json.dumps({"tools": registry.list_tools()}, indent=2))
        return

    for descriptor in (registry.get(name) for name in registry.names()):
        marker = " [gated]" if descriptor.gated else ""
        click.echo(f"  {descriptor.name}{marker} - {descriptor.description}")

    state = "enabled" if registry.trading_enabled else "disabled"
    click.echo(f"\nTrading tools are {state}.")


@main.command(name="check-config")
def check_config() -> None:
    """Validate the environment and print the effective settings."""
    settings = _load_or_exit()
    for key, value in settings.masked().items():
        click.echo(f"{key}: {value}")
    click.echo("Configuration OK")


if __name__ == "__main__":
    main()
