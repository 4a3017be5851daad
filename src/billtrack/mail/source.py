#!/usr/bin/env python3
"""
Message Source Module

Remote message store access: a MessageSource protocol describing the
paginated listing and per-message fetch calls, a Gmail API implementation,
and the assembly of a BillRecord from one fetched message.
"""

import asyncio
import email.utils
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..core.errors import MessageSourceError
from ..core.models import BillRecord
from .decoder import MessagePart, extract_plain_text
from .extractor import extract_bill_fields

logger = logging.getLogger(__name__)

GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"

# API, token refresh and socket-level failures a request can raise
TRANSPORT_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)
DISPLAY_DATE_FORMAT = "%a, %d %b %Y"
NO_DATE = "No date"


@dataclass(frozen=True)
class MessagePage:
    """One page of a message listing."""

    message_ids: list[str] = field(default_factory=list)
    next_page_token: str | None = None
    result_size_estimate: int = 0


@dataclass(frozen=True)
class RawMessage:
    """A fetched message: identifier, headers and part tree."""

    id: str
    headers: dict[str, str]
    payload: MessagePart

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RawMessage":
        """Build from a Gmail ``users.messages.get(format='full')`` response."""
        payload = data.get("payload") or {}
        headers = {h.get("name", ""): h.get("value", "") for h in payload.get("headers") or []}
        return cls(id=data.get("id", ""), headers=headers, payload=MessagePart.from_payload(payload))


class MessageSource(Protocol):
    """Paginated, forward-cursor-only message store."""

    async def list_messages(
        self, query: str, page_token: str | None = None, max_results: int = 20
    ) -> MessagePage:
        """
        List message identifiers matching ``query``.

        Raises:
            MessageSourceError: If the listing call fails
        """
        ...

    async def get_message(self, message_id: str) -> RawMessage:
        """
        Fetch the full content of one message.

        Raises:
            MessageSourceError: If the fetch fails
        """
        ...


class GmailMessageSource:
    """
    MessageSource backed by the Gmail REST API.

    The discovery client is blocking, so each ``execute()`` runs in a worker
    thread and the event loop stays free while the request is in flight.
    """

    def __init__(self, service: Any, user_id: str = "me"):
        self.service = service
        self.user_id = user_id

    @classmethod
    def from_credentials_file(cls, credentials_file: Path, user_id: str = "me") -> "GmailMessageSource":
        """Create a source from an authorized-user token file."""
        from google.oauth2.credentials import Credentials

        if not credentials_file.exists():
            raise FileNotFoundError(f"Gmail credentials not found: {credentials_file}")

        credentials = Credentials.from_authorized_user_file(str(credentials_file), [GMAIL_READONLY_SCOPE])
        service = build("gmail", "v1", credentials=credentials, cache_discovery=False)
        return cls(service, user_id=user_id)

    async def list_messages(
        self, query: str, page_token: str | None = None, max_results: int = 20
    ) -> MessagePage:
        request = (
            self.service.users()
            .messages()
            .list(userId=self.user_id, q=query, maxResults=max_results, pageToken=page_token)
        )
        try:
            result = await asyncio.to_thread(request.execute)
        except TRANSPORT_ERRORS as e:
            raise MessageSourceError(f"Message listing failed: {e}") from e

        return MessagePage(
            message_ids=[m["id"] for m in result.get("messages") or []],
            next_page_token=result.get("nextPageToken") or None,
            result_size_estimate=int(result.get("resultSizeEstimate") or 0),
        )

    async def get_message(self, message_id: str) -> RawMessage:
        request = self.service.users().messages().get(userId=self.user_id, id=message_id, format="full")
        try:
            result = await asyncio.to_thread(request.execute)
        except TRANSPORT_ERRORS as e:
            raise MessageSourceError(f"Fetching message {message_id} failed: {e}") from e
        return RawMessage.from_api(result)


def parse_message_date(value: str) -> datetime | None:
    """Parse an RFC 2822 Date header, returning None when absent or invalid."""
    if not value:
        return None
    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug(f"Unparsable Date header: {value!r}")
        return None
    # "-0000" offsets parse as naive; keep every timestamp comparable
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_display_date(value: datetime | None) -> str:
    """Render a message date the way bill listings show it."""
    return value.strftime(DISPLAY_DATE_FORMAT) if value else NO_DATE


def build_bill_record(message: RawMessage) -> BillRecord:
    """Decode and extract one fetched message into a BillRecord."""
    timestamp = parse_message_date(message.header("Date"))
    display_date = format_display_date(timestamp)

    body = extract_plain_text(message.payload)
    fields = extract_bill_fields(body, display_date)

    return BillRecord(
        id=message.id,
        subject=message.header("Subject"),
        sender=message.header("From"),
        display_date=fields.display_date,
        raw_timestamp=timestamp,
        amount=fields.amount,
        amount_raw=fields.amount_raw,
        vendor=fields.vendor,
        bill_number=fields.bill_number,
    )


async def fetch_bill_record(source: MessageSource, message_id: str) -> BillRecord:
    """Fetch one message and extract it."""
    message = await source.get_message(message_id)
    return build_bill_record(message)
