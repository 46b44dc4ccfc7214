"""Coercion helpers for untrusted input (JSON payloads, spreadsheet cells).

Every helper raises ValidationError with the field name on bad input, so a
malformed record aborts the whole load instead of producing a half-built plan.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime

from mechflow.core.errors import ValidationError

_DIGITS_RE = re.compile(r"^-?\d+$")


def is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and (not value.strip() or value.strip().lower() == "nan")


def clean_str(value, *, default: str = "") -> str:
    if is_missing(value):
        return default
    # Excel turns ids like 10 into 10.0
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).replace("\u00a0", " ").strip()


def require_str(value, *, field: str) -> str:
    s = clean_str(value)
    if not s:
        raise ValidationError(f"{field} is empty")
    return s


def coerce_float(value, *, field: str) -> float:
    """Accepts numbers and numeric strings (',' as decimal separator too)."""
    if is_missing(value):
        raise ValidationError(f"{field} is empty")
    if isinstance(value, bool):
        raise ValidationError(f"{field} is not a number: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    s = str(value).strip()
    if "," in s and "." in s:
        s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")
    try:
        return float(s)
    except ValueError:
        raise ValidationError(f"{field} is not a number: {value!r}") from None


def coerce_int(value, *, field: str) -> int:
    """Accepts ints, integral floats like 3.0 and digit-only strings."""
    if is_missing(value):
        raise ValidationError(f"{field} is empty")
    if isinstance(value, bool):
        raise ValidationError(f"{field} is not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{field} is not an integer: {value!r}")

    s = str(value).strip()
    if _DIGITS_RE.match(s):
        return int(s)
    try:
        f = float(s)
    except ValueError:
        raise ValidationError(f"{field} is not an integer: {value!r}") from None
    if f.is_integer():
        return int(f)
    raise ValidationError(f"{field} is not an integer: {value!r}")


def coerce_date(value, *, field: str = "deadline") -> date | None:
    """ISO YYYY-MM-DD, DD/MM/YYYY, datetimes and pandas Timestamps. Empty -> None."""
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # pandas Timestamp
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime().date()

    s = str(value).strip()
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in ("%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    raise ValidationError(f"{field} is not a date: {value!r}")
