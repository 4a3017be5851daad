#!/usr/bin/env python3
"""
Core Data Models for BillTrack

Common data structures shared by the mail extraction, bill browsing and
forecasting packages. Records produced here are immutable once created.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any


class Missing(str, Enum):
    """Sentinel for a field the extractor could not find."""

    NOT_FOUND = "Not found"

    def __str__(self) -> str:
        return self.value


NOT_FOUND = Missing.NOT_FOUND


def is_missing(value: Any) -> bool:
    """Check whether a field value is the NotFound sentinel (or absent)."""
    return value is None or value is NOT_FOUND


class SortKey(Enum):
    """Fields a bill listing can be ordered by."""

    DATE = "date"
    AMOUNT = "amount"
    VENDOR = "vendor"
    BILL_NUMBER = "bill_number"
    SUBJECT = "subject"
    SENDER = "sender"


class SortDirection(Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        """Return the opposite direction."""
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortSpec:
    """Active ordering of a bill listing."""

    key: SortKey = SortKey.DATE
    direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class BillRecord:
    """
    Structured bill fields extracted from exactly one message.

    ``amount`` is a non-negative float or NOT_FOUND; ``amount_raw`` is the
    matched text (thousands separators included) or NOT_FOUND.
    ``raw_timestamp`` is None when the message carried no parsable date.
    """

    id: str
    subject: str
    sender: str
    display_date: str
    raw_timestamp: datetime | None
    amount: float | Missing = NOT_FOUND
    amount_raw: str | Missing = NOT_FOUND
    vendor: str | Missing = NOT_FOUND
    bill_number: str | Missing = NOT_FOUND

    @property
    def has_amount(self) -> bool:
        """True when an amount was recognised in the body."""
        return not is_missing(self.amount)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "subject": self.subject,
            "sender": self.sender,
            "date": self.display_date,
            "raw_timestamp": self.raw_timestamp.isoformat() if self.raw_timestamp else None,
            "amount": str(self.amount) if is_missing(self.amount) else self.amount,
            "amount_raw": str(self.amount_raw),
            "vendor": str(self.vendor),
            "bill_number": str(self.bill_number),
        }


@dataclass(frozen=True)
class PlaceholderRow:
    """
    Non-sortable row in a bill listing.

    Carries either an informational ``message`` (e.g. an empty page) or an
    ``error`` describing why the page could not be loaded.
    """

    message: str | None = None
    error: str | None = None

    @property
    def text(self) -> str:
        return self.error or self.message or ""


ListingRow = BillRecord | PlaceholderRow


@dataclass(frozen=True)
class PageCursor:
    """
    Position within a paginated, forward-only message listing.

    ``cursor_token`` of None means the server reported no further pages.
    """

    cursor_token: str | None = None
    page_number: int = 0
    total_estimate: int = 0
    page_size: int = 20

    @property
    def has_next(self) -> bool:
        return self.cursor_token is not None

    @property
    def has_previous(self) -> bool:
        return self.page_number > 1

    def advanced(self, cursor_token: str | None, total_estimate: int, page_number: int) -> "PageCursor":
        """Return a copy reflecting a successfully fetched page."""
        return replace(
            self,
            cursor_token=cursor_token,
            total_estimate=total_estimate,
            page_number=page_number,
        )

    def showing_range(self) -> tuple[int, int, int]:
        """
        1-based (first, last, total) row numbers for the current page.

        Mirrors the "Showing 21-40 of 132 bills" line rendered by callers.
        """
        if self.page_number < 1 or self.total_estimate < 1:
            return 0, 0, self.total_estimate
        first = (self.page_number - 1) * self.page_size + 1
        last = min(self.page_number * self.page_size, self.total_estimate)
        return first, last, self.total_estimate


@dataclass(frozen=True)
class PredictionRow:
    """
    Predicted spend for one category in one month.

    ``month_index`` is ``year * 12 + month`` with a 1-based month, so
    consecutive months differ by exactly one across year boundaries.
    """

    category: str
    month_index: int
    predicted_value: float

    @property
    def year(self) -> int:
        return (self.month_index - 1) // 12

    @property
    def month(self) -> int:
        return (self.month_index - 1) % 12 + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "month_index": self.month_index,
            "predicted_value": self.predicted_value,
        }


def month_index(value: date) -> int:
    """Encode a calendar month as ``year * 12 + month``."""
    return value.year * 12 + value.month


class TransactionType(Enum):
    """Types of source-of-record transactions."""

    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


@dataclass(frozen=True)
class SourceTransaction:
    """Transaction row as held by the source-of-record store."""

    id: str
    entity: str
    type: TransactionType
    amount: str | float
    category: str
    date: datetime
    description: str | None = None

    def to_warehouse_row(self) -> dict[str, Any]:
        """
        Map to the analytical store row shape.

        Amount is coerced to float, the date truncated to the calendar day
        and a missing description defaulted to an empty string.
        """
        return {
            "type": self.type.value,
            "amount": float(self.amount),
            "category": self.category,
            "date": self.date.date().isoformat(),
            "description": self.description or "",
            "entity": self.entity,
        }


@dataclass
class ForecastResult:
    """Caller-facing forecast payload."""

    predictions: list[PredictionRow] = field(default_factory=list)
    transactions: list[dict[str, Any]] = field(default_factory=list)
    inserted_rows: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "predictions": [p.to_dict() for p in self.predictions],
            "transactions": self.transactions,
        }
