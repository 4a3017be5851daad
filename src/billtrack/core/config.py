#!/usr/bin/env python3
"""
Configuration Management for BillTrack

Handles environment-based configuration with secure defaults and validation.
Supports multiple environments (development, test, production).
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

BROWSE_QUERY = (
    "(bill OR invoice has:attachment OR Your Amazon.in order) "
    "OR (from:google-pay-noreply@google.com) OR (from:noreply@zomato.com)"
)
EXPORT_QUERY = BROWSE_QUERY + " OR (from:noreply@phonepe.com) OR (from:noreply@paytm.com)"


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class GmailConfig:
    """Message source and bill crawling settings."""

    credentials_file: Path | None = None
    user_id: str = "me"
    browse_query: str = BROWSE_QUERY
    export_query: str = EXPORT_QUERY
    page_size: int = 20
    export_page_size: int = 100
    export_max_pages: int = 10  # Caps worst-case cost of a full export
    export_batch_size: int = 20
    rate_limit_delay: float = 0.5  # Seconds between remote calls during export


@dataclass
class ForecastConfig:
    """Sync-and-forecast settings."""

    warehouse_dir: Path
    transactions_file: Path
    model_name: str = "category_predictor"
    months_back: int = 4
    months_ahead: int = 1


@dataclass
class Config:
    """
    Main configuration class for BillTrack.

    Loads configuration from environment variables with secure defaults
    and validation for each environment type.
    """

    environment: Environment

    data_dir: Path
    output_dir: Path

    gmail: GmailConfig
    forecast: ForecastConfig

    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("BILLTRACK_ENV", "development"))

        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_billtrack"
            base_dir = Path(os.getenv("BILLTRACK_DATA_DIR", str(default_test_dir)))
        else:
            base_dir = Path(os.getenv("BILLTRACK_DATA_DIR", "./data")).expanduser().resolve()

        data_dir = base_dir
        output_dir = data_dir / "exports"

        for directory in [data_dir, output_dir]:
            directory.mkdir(parents=True, exist_ok=True)

        credentials = os.getenv("GMAIL_CREDENTIALS_FILE")
        gmail = GmailConfig(
            credentials_file=Path(credentials).expanduser() if credentials else None,
            user_id=os.getenv("GMAIL_USER_ID", "me"),
            browse_query=os.getenv("GMAIL_BROWSE_QUERY", BROWSE_QUERY),
            export_query=os.getenv("GMAIL_EXPORT_QUERY", EXPORT_QUERY),
            page_size=int(os.getenv("GMAIL_PAGE_SIZE", "20")),
            export_page_size=int(os.getenv("EXPORT_PAGE_SIZE", "100")),
            export_max_pages=int(os.getenv("EXPORT_MAX_PAGES", "10")),
            export_batch_size=int(os.getenv("EXPORT_BATCH_SIZE", "20")),
            rate_limit_delay=float(os.getenv("RATE_LIMIT_DELAY", "0.5")),
        )

        forecast = ForecastConfig(
            warehouse_dir=data_dir / "warehouse",
            transactions_file=Path(
                os.getenv("TRANSACTIONS_FILE", str(data_dir / "transactions.json"))
            ).expanduser(),
            model_name=os.getenv("FORECAST_MODEL_NAME", "category_predictor"),
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            output_dir=output_dir,
            gmail=gmail,
            forecast=forecast,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        for name, path in [("data_dir", self.data_dir), ("output_dir", self.output_dir)]:
            if not path.exists():
                errors.append(f"{name} does not exist: {path}")

        if self.environment == Environment.PRODUCTION and not self.gmail.credentials_file:
            errors.append("GMAIL_CREDENTIALS_FILE is required in production")

        for name, value in [
            ("GMAIL_PAGE_SIZE", self.gmail.page_size),
            ("EXPORT_PAGE_SIZE", self.gmail.export_page_size),
            ("EXPORT_MAX_PAGES", self.gmail.export_max_pages),
            ("EXPORT_BATCH_SIZE", self.gmail.export_batch_size),
        ]:
            if value <= 0:
                errors.append(f"{name} must be positive")

        if self.gmail.rate_limit_delay < 0:
            errors.append("RATE_LIMIT_DELAY must be non-negative")

        if self.forecast.months_back < 0 or self.forecast.months_ahead < 0:
            errors.append("Forecast window offsets must be non-negative")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        if self.environment == Environment.PRODUCTION:
            logging.getLogger("googleapiclient").setLevel(logging.WARNING)
            logging.getLogger("urllib3").setLevel(logging.WARNING)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a plain dictionary for display."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__"):
                result[field_name] = {
                    name: str(value) if isinstance(value, Path) else value
                    for name, value in field_value.__dict__.items()
                }
            elif isinstance(field_value, Path):
                result[field_name] = str(field_value)
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()
