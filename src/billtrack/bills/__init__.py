"""
Bill Browsing and Export Package

Key Components:
- sorting: NOT_FOUND-aware, stable ordering with toggle semantics
- crawler: cursor-based page-by-page browsing of bill messages
- export: full-mailbox export to CSV with batching and pacing
"""

from .crawler import EMPTY_PAGE_MESSAGE, FETCH_FAILED_MESSAGE, CrawlController, CrawlState, PageDirection
from .export import CSV_HEADER, BulkExporter, ExportResult, export_filename, render_csv
from .sorting import SortSession, order_records, sort_value

__all__ = [
    "CSV_HEADER",
    "EMPTY_PAGE_MESSAGE",
    "FETCH_FAILED_MESSAGE",
    "BulkExporter",
    "CrawlController",
    "CrawlState",
    "ExportResult",
    "PageDirection",
    "SortSession",
    "export_filename",
    "order_records",
    "render_csv",
    "sort_value",
]
