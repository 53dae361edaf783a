from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ValidationError


# Maximum amount: 9,999,999,999.99 (999,999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999_999
CENT = Decimal("0.01")

# One plain mailbox per address; list separators and display-name syntax are rejected
_MAILBOX_CHARS = r"[^@\s,;<>\"()\[\]\\:]"
EMAIL_RE = re.compile(rf"^{_MAILBOX_CHARS}+@{_MAILBOX_CHARS}+\.{_MAILBOX_CHARS}+$")


def require_json_object(payload: Any) -> dict:
    """Request bodies are JSON objects; a missing body is treated as empty."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def coerce_int(value: Any, field: str, *, required: bool = False, default: int | None = None) -> int | None:
    """
    Coerce a JSON value to int.

    - None / "" -> default (or ValidationError when required)
    - bools and floats with a fractional part are rejected
    - numeric strings of plain digits are accepted
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return default

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer, not a decimal")
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        # Reject scientific notation and decimals ("1e3", "12.5")
        if not re.fullmatch(r"-?\d+", stripped):
            raise ValidationError(f"{field} must be an integer")
        return int(stripped)

    raise ValidationError(f"{field} must be an integer")


def coerce_cents(value: Any, field: str) -> int:
    """
    Monetary figure given in currency units (e.g. 950.25), as integer cents.

    - None / "" -> 0
    - bools, non-numbers and NaN/Infinity are rejected
    - more than two decimal places is rejected, never rounded
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    if isinstance(value, (bool, dict, list)):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")

    if abs(amount) > Decimal(MAX_AMOUNT_CENTS).scaleb(-2):
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS / 100:,.2f}")

    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} cannot have more than 2 decimal places")
    return int(amount.scaleb(2))


def cents_to_amount(cents: int | None) -> float:
    """Integer cents as a 2-decimal currency figure for JSON."""
    return (cents or 0) / 100


def coerce_text(value: Any, field: str, *, required: bool = False, max_length: int | None = None) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{field} must be a string")
    text = str(value).strip()
    if not text:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def coerce_bool(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_RE.match(value.strip()) is not None
