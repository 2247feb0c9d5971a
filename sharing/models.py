"""Data models for the file-backed expense collection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Union

__all__ = ["Expense", "RecordId", "isoformat_utc", "parse_datetime", "utcnow"]

# Generated ids are UUID strings; seed snapshots may still carry integers.
RecordId = Union[str, int]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="seconds")
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Naive values are read as UTC.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class Expense:
    id: RecordId
    date: str
    description: str
    payer: str
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives."""
        return {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "payer": self.payer,
            "amount": float(self.amount),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from a stored JSON record."""
        amount = Decimal(str(data["amount"]))
        if not amount.is_finite():
            raise ValueError(f"amount must be finite, got {data['amount']!r}")
        return cls(
            id=data["id"],
            date=str(data.get("date", "")),
            description=str(data.get("description", "")),
            payer=str(data.get("payer", "")),
            amount=amount,
        )
