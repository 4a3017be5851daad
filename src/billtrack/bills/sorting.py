#!/usr/bin/env python3
"""
Bill Sort Engine

Orders bill listings by a chosen field.

Rules:
- Placeholder rows are never ordered; they follow the sorted records in
  their original relative order.
- A record whose field is NOT_FOUND sorts after every concrete value in
  both directions. Direction only reorders concrete values.
- Amounts compare numerically, dates by timestamp, everything else as text.
- Sorting is stable: ties keep their original relative order.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..core.models import (
    BillRecord,
    ListingRow,
    PlaceholderRow,
    SortDirection,
    SortKey,
    SortSpec,
    is_missing,
)

_FIELD_GETTERS: dict[SortKey, Callable[[BillRecord], Any]] = {
    SortKey.DATE: lambda r: r.raw_timestamp,
    SortKey.AMOUNT: lambda r: r.amount,
    SortKey.VENDOR: lambda r: r.vendor,
    SortKey.BILL_NUMBER: lambda r: r.bill_number,
    SortKey.SUBJECT: lambda r: r.subject,
    SortKey.SENDER: lambda r: r.sender,
}


def sort_value(record: BillRecord, key: SortKey) -> Any:
    """Comparable value of ``key`` for ``record``, or None when missing."""
    value = _FIELD_GETTERS[key](record)
    if is_missing(value):
        return None
    if key is SortKey.AMOUNT:
        return float(value)
    if key is SortKey.DATE:
        return value
    return str(value)


def order_records(
    rows: Sequence[ListingRow], key: SortKey, direction: SortDirection
) -> list[ListingRow]:
    """
    Return ``rows`` ordered by ``key`` in ``direction``.

    Args:
        rows: Bill records mixed with placeholder rows
        key: Field to order by
        direction: Order of concrete values

    Returns:
        New list: concrete values, then NOT_FOUND values, then placeholders
    """
    concrete: list[tuple[Any, BillRecord]] = []
    missing: list[BillRecord] = []
    placeholders: list[PlaceholderRow] = []

    for row in rows:
        if isinstance(row, PlaceholderRow):
            placeholders.append(row)
            continue
        value = sort_value(row, key)
        if value is None:
            missing.append(row)
        else:
            concrete.append((value, row))

    # sorted(reverse=True) keeps equal elements in their original order
    concrete.sort(key=lambda pair: pair[0], reverse=direction is SortDirection.DESC)
    return [row for _, row in concrete] + missing + placeholders


@dataclass
class SortSession:
    """
    Sort state of one browsing session.

    Omitting the direction toggles: the new direction is the opposite of the
    session's last direction and becomes the session's spec. An explicit
    direction sorts without touching the session.
    """

    spec: SortSpec = field(default_factory=SortSpec)

    def sort(
        self,
        rows: Sequence[ListingRow],
        key: SortKey,
        direction: SortDirection | None = None,
    ) -> list[ListingRow]:
        if direction is not None:
            return order_records(rows, key, direction)

        toggled = self.spec.direction.flipped()
        self.spec = SortSpec(key=key, direction=toggled)
        return order_records(rows, key, toggled)
