#!/usr/bin/env python3
"""
Bulk Bill Export

Walks every page of a message listing (up to a page cap), extracts all
messages in fixed-size concurrent batches and serializes bills with a
recognised amount to CSV.

Failure semantics:
- A single message that fails to fetch or extract is logged and dropped.
- A failed page listing aborts the export with ExportError; nothing is
  written.
"""

import asyncio
import csv
import io
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from ..core.errors import ExportError, MessageSourceError
from ..core.models import BillRecord
from ..mail.source import MessageSource, fetch_bill_record

logger = logging.getLogger(__name__)

CSV_HEADER = ["Vendor", "Subject", "From", "Date", "Amount", "Bill Number"]


@dataclass(frozen=True)
class ExportResult:
    """Serialized export ready to be saved."""

    filename: str
    content: bytes
    row_count: int

    def write(self, directory: Path) -> Path:
        """Write the CSV into ``directory`` and return its path."""
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename
        path.write_bytes(self.content)
        return path


def export_filename(export_date: date) -> str:
    return f"all_bills_{export_date.isoformat()}.csv"


def bill_to_row(bill: BillRecord) -> list[str]:
    """Cells of one CSV row, in CSV_HEADER order."""
    return [
        str(bill.vendor),
        bill.subject or "",
        bill.sender or "",
        bill.display_date,
        str(bill.amount_raw),
        str(bill.bill_number),
    ]


def render_csv(bills: list[BillRecord]) -> bytes:
    """
    Serialize bills as UTF-8 CSV.

    The header row is bare; every data cell is quoted with embedded quotes
    doubled.
    """
    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADER) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(bill_to_row(bill) for bill in bills)
    # No trailing newline after the last row
    return buffer.getvalue().removesuffix("\n").encode("utf-8")


class BulkExporter:
    """
    Full-mailbox bill export.

    Remote calls are paced by ``delay`` seconds: after every listing page and
    after every extraction batch. At most ``batch_size`` message fetches are in
    flight at once.
    """

    def __init__(
        self,
        source: MessageSource,
        query: str,
        page_size: int = 100,
        max_pages: int = 10,
        batch_size: int = 20,
        delay: float = 0.5,
        today: Callable[[], date] = date.today,
    ):
        self.source = source
        self.query = query
        self.page_size = page_size
        self.max_pages = max_pages
        self.batch_size = batch_size
        self.delay = delay
        self.today = today

    async def collect_message_ids(self) -> list[str]:
        """
        List every matching message id, stopping after ``max_pages`` pages.

        Raises:
            ExportError: If any listing call fails
        """
        message_ids: list[str] = []
        page_token: str | None = None
        pages = 0

        while pages < self.max_pages:
            pages += 1
            try:
                page = await self.source.list_messages(
                    self.query, page_token=page_token, max_results=self.page_size
                )
            except MessageSourceError as e:
                raise ExportError(f"Listing page {pages} failed: {e}") from e

            message_ids.extend(page.message_ids)
            page_token = page.next_page_token
            await asyncio.sleep(self.delay)

            if not page_token:
                break
        else:
            logger.warning(f"Stopped listing after {self.max_pages} pages; remaining messages skipped")

        logger.info(f"Collected {len(message_ids)} message ids from {pages} pages")
        return message_ids

    async def _extract_one(self, message_id: str) -> BillRecord | None:
        try:
            bill = await fetch_bill_record(self.source, message_id)
        except Exception as e:
            logger.error(f"Error processing message {message_id}: {e}")
            return None

        # No amount: most likely not a real bill
        return bill if bill.has_amount else None

    async def extract_bills(self, message_ids: list[str]) -> list[BillRecord]:
        """Extract messages batch by batch, dropping failures and amount-less bills."""
        bills: list[BillRecord] = []
        for start in range(0, len(message_ids), self.batch_size):
            batch = message_ids[start : start + self.batch_size]
            results = await asyncio.gather(*(self._extract_one(mid) for mid in batch))
            bills.extend(bill for bill in results if bill is not None)
            logger.debug(f"Processed {start + len(batch)}/{len(message_ids)} messages")
            await asyncio.sleep(self.delay)
        return bills

    async def run(self) -> ExportResult:
        """
        Run the full export.

        Raises:
            ExportError: If pagination fails
        """
        message_ids = await self.collect_message_ids()
        bills = await self.extract_bills(message_ids)
        logger.info(f"Exporting {len(bills)} bills out of {len(message_ids)} messages")
        return ExportResult(
            filename=export_filename(self.today()),
            content=render_csv(bills),
            row_count=len(bills),
        )
