"""Client-side ordering of fetched records."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Sequence

Record = Dict[str, Any]


def _amount_key(record: Record) -> Decimal:
    # Legacy records may hold amounts as text; unparsable values sort first.
    try:
        amount = Decimal(str(record.get("amount")))
    except InvalidOperation:
        return Decimal("-Infinity")
    return amount if not amount.is_nan() else Decimal("-Infinity")


def _text_key(field: str) -> Callable[[Record], str]:
    def key(record: Record) -> str:
        value = record.get(field)
        if isinstance(value, dict):
            value = value.get("name")
        return str(value if value is not None else "").lower()

    return key


SORT_KEYS: Dict[str, Callable[[Record], Any]] = {
    "id": _text_key("id"),
    "date": _text_key("date"),
    "description": _text_key("description"),
    "payer": _text_key("payer"),
    "amount": _amount_key,
}


def sort_records(
    records: Sequence[Record], key: Optional[str] = None, descending: bool = False
) -> List[Record]:
    """Return a sorted copy of ``records``; the input is left untouched.

    ``key=None`` keeps the fetched order. Python's sort is stable, so sorting
    an already sorted snapshot with the same key returns the same order.
    """
    if key is None:
        return list(records)
    try:
        sort_key = SORT_KEYS[key]
    except KeyError as exc:
        raise ValueError(f"Unknown sort key: {key}") from exc
    return sorted(records, key=sort_key, reverse=descending)
