"""
Mail Processing Package

Turns raw messages from a remote message store into structured bill records.

Key Components:
- decoder: part-tree traversal and URL-safe base64 body decoding
- extractor: rule table extracting amount, bill number and vendor
- source: MessageSource protocol, Gmail adapter and record assembly
"""

from .decoder import NO_BODY_FOUND, MessagePart, decode_body_data, extract_plain_text, find_part
from .extractor import EXTRACTION_RULES, ExtractedFields, ExtractionRule, extract_bill_fields
from .source import (
    GmailMessageSource,
    MessagePage,
    MessageSource,
    RawMessage,
    build_bill_record,
    fetch_bill_record,
    format_display_date,
    parse_message_date,
)

__all__ = [
    "EXTRACTION_RULES",
    "NO_BODY_FOUND",
    "ExtractedFields",
    "ExtractionRule",
    "GmailMessageSource",
    "MessagePage",
    "MessagePart",
    "MessageSource",
    "RawMessage",
    "build_bill_record",
    "decode_body_data",
    "extract_bill_fields",
    "extract_plain_text",
    "fetch_bill_record",
    "find_part",
    "format_display_date",
    "parse_message_date",
]
