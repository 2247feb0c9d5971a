"""Validation helpers shared across the expense sharing services."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional

from .exceptions import ValidationError
from .models import parse_datetime


# Largest value a Numeric(12, 2) column holds.
MAX_AMOUNT = Decimal("9999999999.99")


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def require_mapping(payload: object) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("request body must be a JSON object")
    return payload


def parse_amount(raw: object, field: str) -> Decimal:
    """Convert raw input to a positive Decimal with exactly two fraction digits."""
    # bool is an int subclass; True must not become an amount of 1.
    if isinstance(raw, bool) or raw is None:
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as exc:
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    try:
        amount = _quantize_two_decimals(amount)
    except InvalidOperation as exc:
        raise ValidationError(f"{field} must be at most {MAX_AMOUNT}") from exc

    # Checked after rounding so 0.001 cannot be stored as 0.00.
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} must be at most {MAX_AMOUNT}")
    return amount


def validate_legacy_amount(raw: object, field: str) -> str:
    """Validate a text-typed amount column and return the text to store.

    Top-up amounts were historically stored as strings. The value must still
    parse as a positive number, but a string is kept exactly as given.
    """
    parse_amount(raw, field)
    if isinstance(raw, str):
        return raw
    return str(raw)


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_optional_str(value: object, field: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    return validate_required_str(value, field, max_length)


def validate_datetime(value: object, field: str) -> datetime:
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    elif isinstance(value, str):
        try:
            dt = parse_datetime(value)
        except ValueError as exc:
            raise ValidationError(f"{field} must be an ISO 8601 datetime") from exc
    else:
        raise ValidationError(f"{field} must be a datetime or ISO 8601 string")
    return dt.astimezone(timezone.utc)


def validate_positive_int(value: object, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return value
