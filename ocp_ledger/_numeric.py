"""Normalization primitives shared by every entity converter.

Numbers on the ledger are canonical decimal strings:
- no scientific notation: "1e5" is rejected
- no insignificant zeros: "1.500" becomes "1.5", "007" becomes "7"
- sign and integer-vs-decimal shape are preserved: "-2.25" stays "-2.25"

Dates are "YYYY-MM-DD" on the native side and midnight UTC timestamps on the
ledger side. Reading a timestamp back keeps only its date portion.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

_NUMERIC_PATTERN = re.compile(r"^([+-]?)(\d+)(?:\.(\d+))?$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MIDNIGHT_UTC_SUFFIX = "T00:00:00.000Z"


class _Undefined:
    """Marker for a value that was never set.

    Distinct from None, which is an explicit null on the wire. Payloads must
    never contain it; the JSON-safety validator rejects it at build time.
    """

    _instance: Optional["_Undefined"] = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Any = _Undefined()


def normalize_numeric_string(value: Any) -> str:
    """Return the canonical decimal string for a number.

    Args:
        value: An int, float, Decimal or numeric string

    Returns:
        Canonical decimal string; normalizing its output returns it unchanged

    Raises:
        ValueError: If the value is not a finite plain decimal number
    """
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got bool {value!r}")

    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError(f"Number must be finite, got {value!r}")
        text = format(Decimal(repr(value)), "f")
    elif isinstance(value, int):
        text = str(value)
    elif isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Number must be finite, got {value!r}")
        text = format(value, "f")
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Numeric value cannot be an empty string")
    else:
        raise ValueError(f"Expected a number or numeric string, got {type(value).__name__}")

    match = _NUMERIC_PATTERN.match(text)
    if not match:
        raise ValueError(
            f"Invalid numeric format: {text!r}. Expected a plain decimal like '100' or '0.25'"
        )

    sign, integer, fraction = match.groups()
    integer = integer.lstrip("0") or "0"
    fraction = (fraction or "").rstrip("0")

    result = integer if not fraction else f"{integer}.{fraction}"
    if sign == "-" and result != "0":
        result = "-" + result
    return result


def date_to_ledger_time(value: Any) -> str:
    """Encode a native date as a ledger timestamp.

    A plain "YYYY-MM-DD" date becomes midnight UTC. Strings that already
    carry a time portion are passed through unchanged.

    Raises:
        ValueError: If the value is not a date or date string
    """
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
    if isinstance(value, date):
        return value.isoformat() + MIDNIGHT_UTC_SUFFIX
    if not isinstance(value, str):
        raise ValueError(f"Expected a date string, got {type(value).__name__}")

    value = value.strip()
    if "T" in value:
        if not _DATE_PATTERN.match(value.split("T", 1)[0]):
            raise ValueError(f"Invalid timestamp format: {value!r}")
        return value
    if not _DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date format: {value!r}. Expected 'YYYY-MM-DD'")
    return value + MIDNIGHT_UTC_SUFFIX


def ledger_time_to_date(value: str) -> str:
    """Extract the date portion of a ledger timestamp, dropping time-of-day."""
    return value.split("T", 1)[0]


def optional_string(value: Any) -> Optional[str]:
    """Map absent or empty strings to an explicit None."""
    if value is None or value is UNDEFINED or value == "":
        return None
    return value


def clean_comments(comments: Optional[Iterable[Any]]) -> list[str]:
    """Drop empty, whitespace-only and non-string comment entries."""
    if not comments:
        return []
    return [c for c in comments if isinstance(c, str) and c.strip()]
