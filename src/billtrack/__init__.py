"""
BillTrack - Bill Extraction and Expense Forecasting

Extracts structured bills from email and forecasts per-category spending.

Domain Packages:
- core: data models, errors, configuration
- mail: message decoding, field extraction, message source adapters
- bills: sorting, page-by-page browsing and bulk CSV export
- forecast: incremental warehouse sync, model training and prediction
- cli: command-line interface

Example Usage:
    from billtrack.bills import CrawlController, PageDirection
    from billtrack.forecast import ForecastEngine, JsonTransactionStore, LocalWarehouse
    from billtrack.mail import extract_bill_fields
"""

__version__ = "0.1.0"

from .core.config import Environment, get_config
from .core.models import NOT_FOUND, BillRecord, PageCursor, PredictionRow, SortSpec

__all__ = [
    "NOT_FOUND",
    "BillRecord",
    "Environment",
    "PageCursor",
    "PredictionRow",
    "SortSpec",
    "get_config",
]
