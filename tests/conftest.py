"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from pathlib import Path

import pytest

import billtrack.core.config as config_module

from .fixtures.fakes import FakeMessageSource, make_message


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def bill_messages() -> dict[str, dict]:
    """Three bill messages with distinct amounts and one without any amount."""
    return {
        "m1": make_message(
            "m1",
            body="Invoice No: INV-001\nTotal: ₹1,234.50\nSold by: Acme Stores",
            subject="Invoice INV-001",
            date_header="Mon, 14 Aug 2023 09:00:00 +0000",
        ),
        "m2": make_message(
            "m2",
            body="Amount paid: $45.00\nOrder ID: 402-999",
            subject="Order confirmation",
            date_header="Wed, 16 Aug 2023 09:00:00 +0000",
        ),
        "m3": make_message(
            "m3",
            body="Thanks for your visit, no charges today.",
            subject="Visit summary",
            date_header="Tue, 15 Aug 2023 09:00:00 +0000",
        ),
    }


@pytest.fixture
def message_source(bill_messages) -> FakeMessageSource:
    """Two-page source: m1, m2 on page one and m3 on page two."""
    return FakeMessageSource([["m1", "m2"], ["m3"]], bill_messages)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use production data
    monkeypatch.setenv("BILLTRACK_ENV", "test")
    monkeypatch.setenv("BILLTRACK_DATA_DIR", str(tmp_path / "billtrack_data"))
    monkeypatch.delenv("GMAIL_CREDENTIALS_FILE", raising=False)
    monkeypatch.delenv("TRANSACTIONS_FILE", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "INFO")

    # Every test starts from a fresh configuration
    monkeypatch.setattr(config_module, "_config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "mail: Tests for message decoding and field extraction")
    config.addinivalue_line("markers", "bills: Tests for bill browsing, sorting and export")
    config.addinivalue_line("markers", "forecast: Tests for transaction sync and forecasting")
    config.addinivalue_line("markers", "slow: Tests that take significant time to run")
