"""Tests for the CLI module."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from dhan_mcp import __version__
from dhan_mcp.cli import main

ENV = {
    "DHAN_ACCESS_TOKEN": "token-abcdef123456",
    "DHAN_CLIENT_ID": "1000000001",
    "DHAN_BASE_URL": "",
    "DHAN_TIMEOUT_MS": "",
    "ENABLE_TRADING_TOOLS": "",
    "MAX_ORDER_QUANTITY": "",
    "DHAN_MAX_IN_FLIGHT": "",
}


class TestCLI:
    """Test CLI commands."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    def test_main_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Dhan MCP server" in result.output
        assert "serve" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestServeCommand:
    @pytest.fixture
    def runner(self):
        return CliRunner()

    @patch("dhan_mcp.server.run")
    def test_serve_runs_with_loaded_settings(self, mock_run, runner):
        result = runner.invoke(main, ["serve"], env={**ENV, "ENABLE_TRADING_TOOLS": "true"})

        assert result.exit_code == 0
        settings = mock_run.call_args[0][0]
        assert settings.client_id == "1000000001"
        assert settings.enable_trading_tools is True

    @patch("dhan_mcp.server.run")
    def test_serve_fails_fast_on_bad_config(self, mock_run, runner):
        result = runner.invoke(main, ["serve"], env={**ENV, "MAX_ORDER_QUANTITY": "lots"})

        assert result.exit_code == 2
        assert "MAX_ORDER_QUANTITY" in result.output
        mock_run.assert_not_called()


class TestToolsCommand:
    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_lists_tools_with_gate_state(self, runner):
        result = runner.invoke(main, ["tools"], env=ENV)

        assert result.exit_code == 0
        assert "get_profile - Fetch Dhan account profile details." in result.output
        assert "place_order [gated]" in result.output
        assert "Trading tools are disabled." in result.output

    def test_raw_output_is_tools_list_payload(self, runner):
        result = runner.invoke(main, ["tools", "--raw"], env=ENV)

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert [t["name"] for t in payload["tools"]][0] == "get_profile"


class TestCheckConfigCommand:
    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_prints_masked_settings(self, runner):
        result = runner.invoke(main, ["check-config"], env=ENV)

        assert result.exit_code == 0
        assert "access_token: toke..." in result.output
        assert "token-abcdef123456" not in result.output
        assert "Configuration OK" in result.output

    def test_missing_credentials(self, runner):
        result = runner.invoke(main, ["check-config"], env={**ENV, "DHAN_ACCESS_TOKEN": ""})

        assert result.exit_code == 2
        assert "DHAN_ACCESS_TOKEN is required" in result.output
