#!/usr/bin/env python3
"""
Source-of-Record Transaction Store

The TransactionStore protocol the sync phase reads from, and a JSON file
implementation holding users and their transactions.

File layout::

    {
      "users": [{"id": "u1", "external_id": "user_abc"}],
      "transactions": [
        {"id": "t1", "userId": "u1", "type": "EXPENSE", "amount": "500.00",
         "category": "Food", "date": "2025-01-15T10:30:00", "description": null}
      ]
    }
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol

from ..core.json_utils import read_json
from ..core.models import SourceTransaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionStore(Protocol):
    """Read access to the source-of-record transactions."""

    async def resolve_entity(self, identity: str) -> str | None:
        """Map an authenticated caller identity to an entity id."""
        ...

    async def find_transactions(self, entity: str, after: date | None = None) -> list[SourceTransaction]:
        """
        Transactions of ``entity``, restricted to calendar days after ``after``.

        Args:
            entity: Entity id
            after: Exclusive lower bound on the transaction day (None: all)
        """
        ...


def parse_transaction(data: dict[str, Any]) -> SourceTransaction:
    """
    Build a SourceTransaction from a stored dictionary.

    Raises:
        ValueError: If the type or date is invalid
    """
    raw_date = data["date"]
    if isinstance(raw_date, str):
        parsed = datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
    else:
        parsed = raw_date
    return SourceTransaction(
        id=str(data.get("id", "")),
        entity=str(data.get("userId") or data.get("entity", "")),
        type=TransactionType(str(data["type"]).upper()),
        amount=data["amount"],
        category=data.get("category") or "",
        date=parsed,
        description=data.get("description"),
    )


class JsonTransactionStore:
    """TransactionStore reading a JSON document from disk on every call."""

    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> dict[str, Any]:
        data = read_json(self.path, default={})
        if isinstance(data, list):
            return {"users": [], "transactions": data}
        return data

    async def resolve_entity(self, identity: str) -> str | None:
        for user in self._load().get("users", []):
            if identity in (user.get("external_id"), user.get("id")):
                return str(user["id"])
        return None

    async def find_transactions(self, entity: str, after: date | None = None) -> list[SourceTransaction]:
        transactions = []
        for item in self._load().get("transactions", []):
            if str(item.get("userId") or item.get("entity", "")) != entity:
                continue
            try:
                tx = parse_transaction(item)
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed transaction {item.get('id')}: {e}")
                continue
            if after is None or tx.date.date() > after:
                transactions.append(tx)
        return transactions
