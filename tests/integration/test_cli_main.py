#!/usr/bin/env python3
"""
Integration tests for CLI Main Entry Point

Tests end-to-end CLI command execution with real command invocation.
"""

import json

import pytest
from click.testing import CliRunner

import billtrack.cli.bills as bills_cli
from billtrack.cli.main import main
from billtrack.core.json_utils import write_json
from tests.fixtures.fakes import FakeMessageSource, make_message


@pytest.mark.integration
class TestCLIMainIntegration:
    """Test main CLI entry point with real command execution."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_help_command_lists_all_subcommands(self):
        """Test billtrack --help shows all registered subcommands."""
        result = self.runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "BillTrack" in result.output
        for command in ["bills", "forecast", "config", "version"]:
            assert command in result.output

    def test_version_command_shows_version_info(self):
        """Test billtrack version displays the version."""
        result = self.runner.invoke(main, ["version"])

        assert result.exit_code == 0
        assert "BillTrack v" in result.output

    def test_config_command_shows_configuration(self):
        """Test billtrack config displays current configuration."""
        result = self.runner.invoke(main, ["config"])

        assert result.exit_code == 0
        assert "Current Configuration:" in result.output
        assert "Environment: test" in result.output
        assert "Gmail Credentials: not configured" in result.output

    def test_verbose_flag_enables_verbose_output(self):
        """Test --verbose adds environment details."""
        result = self.runner.invoke(main, ["--verbose", "config"])

        assert result.exit_code == 0
        assert "Data directory:" in result.output

    def test_invalid_command_shows_error(self):
        """Test that invalid command shows helpful error."""
        result = self.runner.invoke(main, ["invalid-command"])

        assert result.exit_code != 0


@pytest.mark.integration
@pytest.mark.bills
class TestBillsCLI:
    """Test bills commands against a fake message source."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_list_without_credentials_fails(self):
        """Test the error when no credentials are configured."""
        result = self.runner.invoke(main, ["bills", "list"])

        assert result.exit_code != 0
        assert "GMAIL_CREDENTIALS_FILE" in result.output

    def test_list_pages(self, monkeypatch, message_source):
        """Test listing two pages with amount sorting."""
        monkeypatch.setenv("GMAIL_PAGE_SIZE", "2")
        monkeypatch.setattr(bills_cli, "open_message_source", lambda config: message_source)

        result = self.runner.invoke(main, ["bills", "list", "--pages", "2", "--sort-by", "amount"])

        assert result.exit_code == 0, result.output
        assert "Page 1: showing 1-2 of 3 bills" in result.output
        assert "Page 2: showing 3-3 of 3 bills" in result.output
        assert "Invoice INV-001" in result.output
        assert message_source.list_calls == [None, "page-1"]

    def test_list_toggle_applies_one_direction_to_every_page(self, monkeypatch):
        """Test that an omitted direction is resolved once, not flipped per page."""
        messages = {
            "a": make_message("a", body="Total: ₹900", subject="Page one high"),
            "b": make_message("b", body="Total: ₹10", subject="Page one low"),
            "c": make_message("c", body="Total: ₹800", subject="Page two high"),
            "d": make_message("d", body="Total: ₹20", subject="Page two low"),
        }
        source = FakeMessageSource([["a", "b"], ["c", "d"]], messages)
        monkeypatch.setenv("GMAIL_PAGE_SIZE", "2")
        monkeypatch.setattr(bills_cli, "open_message_source", lambda config: source)

        result = self.runner.invoke(main, ["bills", "list", "--pages", "2", "--sort-by", "amount"])

        assert result.exit_code == 0, result.output
        output = result.output
        # Default session direction is descending, so the toggle sorts ascending
        assert output.index("Page one low") < output.index("Page one high")
        assert output.index("Page two low") < output.index("Page two high")

    def test_export_writes_csv(self, monkeypatch, message_source, temp_dir):
        """Test exporting to an explicit directory."""
        monkeypatch.setenv("RATE_LIMIT_DELAY", "0")
        monkeypatch.setattr(bills_cli, "open_message_source", lambda config: message_source)

        result = self.runner.invoke(main, ["bills", "export", "--output-dir", str(temp_dir)])

        assert result.exit_code == 0, result.output
        assert "Exported 2 bills" in result.output
        exported = list(temp_dir.glob("all_bills_*.csv"))
        assert len(exported) == 1

    def test_export_listing_failure(self, monkeypatch, message_source, temp_dir):
        """Test that a failed listing writes nothing and exits non-zero."""
        monkeypatch.setenv("RATE_LIMIT_DELAY", "0")
        message_source.fail_listing_pages.add(0)
        monkeypatch.setattr(bills_cli, "open_message_source", lambda config: message_source)

        result = self.runner.invoke(main, ["bills", "export", "--output-dir", str(temp_dir)])

        assert result.exit_code != 0
        assert list(temp_dir.glob("*.csv")) == []


@pytest.mark.integration
@pytest.mark.forecast
class TestForecastCLI:
    """Test forecast commands against local stores."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_unknown_identity(self, monkeypatch, temp_dir):
        """Test the error for an identity without an entity."""
        monkeypatch.setenv("TRANSACTIONS_FILE", str(temp_dir / "tx.json"))
        write_json(temp_dir / "tx.json", {"users": [], "transactions": []})

        result = self.runner.invoke(main, ["forecast", "run", "user_abc"])

        assert result.exit_code != 0
        assert "User not found" in result.output

    def test_run_json_output(self, monkeypatch, temp_dir):
        """Test a full run printing the JSON payload."""
        monkeypatch.setenv("TRANSACTIONS_FILE", str(temp_dir / "tx.json"))
        write_json(
            temp_dir / "tx.json",
            {
                "users": [{"id": "u1", "external_id": "user_abc"}],
                "transactions": [
                    {"id": "t1", "userId": "u1", "type": "EXPENSE", "amount": "500", "category": "Food",
                     "date": "2021-08-10"},
                ],
            },
        )

        result = self.runner.invoke(main, ["forecast", "run", "user_abc", "--json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["transactions"] == [{"date": "2021-08-10", "amount": 500.0}]
        assert set(payload) == {"predictions", "transactions"}
