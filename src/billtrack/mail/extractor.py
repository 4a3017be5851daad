#!/usr/bin/env python3
"""
Bill Field Extractor

Heuristic extraction of amount, bill number and vendor from decoded message
text. Rules live in EXTRACTION_RULES and are evaluated in order; each rule
is independent and the first match of its pattern wins. A rule that does not
match leaves its fields at NOT_FOUND. Support for a new email layout is added
by appending a rule, not by branching in code.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..core.models import NOT_FOUND, Missing

# Labels that introduce a payable total. The run between label and number may
# not contain a currency marker or digit, so the marker is consumed explicitly.
AMOUNT_PATTERN = re.compile(
    r"(?:total(?:\s+amount)?|total\s+paid|bill\s+amount|amount\s+paid|amount\s+due|amount\s*[=:])"
    r"[^₹$INR0-9]*"
    r"[₹$]?\s?(?:Rs\.?|INR)?\s?"
    r"(\d[\d,]*(?:\.\d{2})?)",
    re.IGNORECASE,
)

BILL_NUMBER_PATTERN = re.compile(
    r"(?:Bill\s+No|Invoice\s+No|Order\s+No|Order\s+ID|Receipt\s+No)[\s#:.]*([A-Za-z0-9\-]+)",
    re.IGNORECASE,
)

VENDOR_PATTERN = re.compile(
    r"\b(?:from|vendor|sold\s+by|merchant|bill\s+for)[:\s]*([\w \t&.,'-]+)",
    re.IGNORECASE,
)


def _parse_amount(raw: str) -> dict[str, Any]:
    return {"amount": float(raw.replace(",", "")), "amount_raw": raw}


def _clean_text(name: str) -> Callable[[str], dict[str, Any]]:
    def post_process(raw: str) -> dict[str, Any]:
        value = raw.strip()
        return {name: value} if value else {}

    return post_process


@dataclass(frozen=True)
class ExtractionRule:
    """Pattern plus the post-processing that turns its capture into fields."""

    name: str
    pattern: re.Pattern[str]
    post_process: Callable[[str], dict[str, Any]]

    def apply(self, text: str) -> dict[str, Any]:
        match = self.pattern.search(text)
        if not match or not match.group(1):
            return {}
        return self.post_process(match.group(1))


EXTRACTION_RULES: list[ExtractionRule] = [
    ExtractionRule("amount", AMOUNT_PATTERN, _parse_amount),
    ExtractionRule("bill_number", BILL_NUMBER_PATTERN, _clean_text("bill_number")),
    ExtractionRule("vendor", VENDOR_PATTERN, _clean_text("vendor")),
]


@dataclass(frozen=True)
class ExtractedFields:
    """Bill fields recovered from one message body."""

    display_date: str
    amount: float | Missing = NOT_FOUND
    amount_raw: str | Missing = NOT_FOUND
    vendor: str | Missing = NOT_FOUND
    bill_number: str | Missing = NOT_FOUND


def extract_bill_fields(
    body_text: str,
    display_date: str,
    rules: list[ExtractionRule] | None = None,
) -> ExtractedFields:
    """
    Extract bill fields from decoded body text.

    Pure function: no I/O and never raises for unrecognised text. The
    display date is passed through unchanged.

    Args:
        body_text: Decoded message text (may be the no-body sentinel)
        display_date: Pre-formatted date for the record
        rules: Rule table to evaluate (default: EXTRACTION_RULES)

    Returns:
        ExtractedFields with NOT_FOUND for every field no rule matched
    """
    found: dict[str, Any] = {}
    for rule in rules if rules is not None else EXTRACTION_RULES:
        for key, value in rule.apply(body_text).items():
            found.setdefault(key, value)
    return ExtractedFields(display_date=display_date, **found)
