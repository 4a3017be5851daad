#!/usr/bin/env python3
"""
Bill Crawl Controller

Interactive, page-at-a-time browsing of bill messages.

The message source only offers a forward cursor. Going back a page therefore
re-issues the first page and decrements the page counter; the records shown
are page one's, not the previous page's. Callers that need true backward
paging must cache pages themselves.
"""

import asyncio
import logging
from enum import Enum

from ..core.errors import CrawlInProgressError
from ..core.models import ListingRow, PageCursor, PlaceholderRow, SortDirection, SortKey, SortSpec
from ..mail.source import MessageSource, fetch_bill_record
from .sorting import SortSession, order_records

logger = logging.getLogger(__name__)

EMPTY_PAGE_MESSAGE = "No bill-related emails found."
FETCH_FAILED_MESSAGE = "Failed to fetch bills. Please try again."


class CrawlState(Enum):
    """Controller lifecycle states."""

    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    ERROR = "error"


class PageDirection(Enum):
    """Navigation requested by the caller."""

    FIRST = "first"
    NEXT = "next"
    PREVIOUS = "previous"


class CrawlController:
    """
    Cursor-driven bill browser over a MessageSource.

    Holds the current page of rows, the PageCursor and the SortSession.
    Only one fetch may be in flight; overlapping calls are rejected.
    """

    def __init__(self, source: MessageSource, query: str, page_size: int = 20):
        self.source = source
        self.query = query
        self.page_size = page_size
        self.state = CrawlState.IDLE
        self.cursor = PageCursor(page_size=page_size)
        self.sort_session = SortSession()
        self.rows: list[ListingRow] = []

    @property
    def sort_spec(self) -> SortSpec:
        return self.sort_session.spec

    def can_fetch(self, direction: PageDirection) -> bool:
        """Whether ``direction`` is currently reachable."""
        if direction is PageDirection.NEXT:
            return self.cursor.has_next
        if direction is PageDirection.PREVIOUS:
            return self.cursor.has_previous
        return True

    async def fetch_page(self, direction: PageDirection = PageDirection.NEXT) -> list[ListingRow]:
        """
        Fetch a page and make it the working set.

        NEXT requires a cursor token and PREVIOUS a page number above one;
        otherwise the call is a no-op that returns the current rows.

        Raises:
            CrawlInProgressError: If another fetch is still running
        """
        if self.state is CrawlState.FETCHING:
            raise CrawlInProgressError("A page fetch is already in progress")

        if not self.can_fetch(direction):
            logger.debug(f"Ignoring {direction.value} fetch at page {self.cursor.page_number}")
            return self.rows

        previous_state = self.state
        self.state = CrawlState.FETCHING
        page_token = self.cursor.cursor_token if direction is PageDirection.NEXT else None

        try:
            page = await self.source.list_messages(self.query, page_token=page_token, max_results=self.page_size)

            if not page.message_ids:
                self.rows = [PlaceholderRow(message=EMPTY_PAGE_MESSAGE)]
                self.state = CrawlState.READY
                return self.rows

            records = await asyncio.gather(*(fetch_bill_record(self.source, mid) for mid in page.message_ids))
        except Exception as e:
            logger.error(f"Error fetching bills: {e}")
            self.rows = [PlaceholderRow(error=FETCH_FAILED_MESSAGE)]
            self.state = CrawlState.ERROR
            return self.rows
        except BaseException:
            self.state = previous_state
            raise

        self.rows = order_records(records, SortKey.DATE, SortDirection.DESC)
        self.cursor = self.cursor.advanced(
            cursor_token=page.next_page_token,
            total_estimate=page.result_size_estimate,
            page_number=self._next_page_number(direction),
        )
        self.state = CrawlState.READY
        logger.info(f"Loaded page {self.cursor.page_number} with {len(records)} bills")
        return self.rows

    def _next_page_number(self, direction: PageDirection) -> int:
        if direction is PageDirection.PREVIOUS:
            return max(1, self.cursor.page_number - 1)
        if direction is PageDirection.FIRST:
            return 1
        return self.cursor.page_number + 1

    def sort_by(self, key: SortKey, direction: SortDirection | None = None) -> list[ListingRow]:
        """Reorder the current page without refetching."""
        self.rows = self.sort_session.sort(self.rows, key, direction)
        return self.rows

    def reset(self) -> None:
        """Drop the working set and cursor, e.g. after the user signs out."""
        if self.state is CrawlState.FETCHING:
            raise CrawlInProgressError("Cannot reset while a page fetch is in progress")
        self.rows = []
        self.cursor = PageCursor(page_size=self.page_size)
        self.sort_session = SortSession()
        self.state = CrawlState.IDLE
