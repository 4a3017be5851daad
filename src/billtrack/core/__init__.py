"""
Core Utilities Package

Shared data models, error types and configuration used by the mail,
bills and forecast packages.
"""

from .config import Config, Environment, get_config, reload_config
from .errors import (
    BillTrackError,
    CrawlInProgressError,
    EntityNotFoundError,
    ExportError,
    MessageSourceError,
    UnauthorizedError,
    WarehouseError,
    WarehouseErrorKind,
)
from .models import (
    NOT_FOUND,
    BillRecord,
    ForecastResult,
    ListingRow,
    Missing,
    PageCursor,
    PlaceholderRow,
    PredictionRow,
    SortDirection,
    SortKey,
    SortSpec,
    SourceTransaction,
    TransactionType,
    is_missing,
    month_index,
)

__all__ = [
    "NOT_FOUND",
    "BillRecord",
    "BillTrackError",
    "Config",
    "CrawlInProgressError",
    "EntityNotFoundError",
    "Environment",
    "ExportError",
    "ForecastResult",
    "ListingRow",
    "MessageSourceError",
    "Missing",
    "PageCursor",
    "PlaceholderRow",
    "PredictionRow",
    "SortDirection",
    "SortKey",
    "SortSpec",
    "SourceTransaction",
    "TransactionType",
    "UnauthorizedError",
    "WarehouseError",
    "WarehouseErrorKind",
    "get_config",
    "is_missing",
    "month_index",
    "reload_config",
]
