"""
Conversion of card field values between field data types.

Used when a field type's `dataType` changes and existing card values must be
brought into the new domain. A conversion that cannot be done for a single
value yields None; a conversion that is never allowed is rejected up front
by `conversion_allowed`.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any

SHORT_TEXT_MAX_LENGTH = 80

TEXT_TYPES = frozenset({"shortText", "longText"})
NUMBER_TYPES = frozenset({"number", "integer"})
DATE_TYPES = frozenset({"date", "dateTime"})

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def conversion_allowed(from_type: str, to_type: str) -> bool:
    """Check whether values of `from_type` can be converted to `to_type`."""
    if from_type == to_type:
        return True
    # Text converts to anything except enum.
    if from_type in TEXT_TYPES:
        return to_type != "enum"
    if from_type in NUMBER_TYPES and to_type in NUMBER_TYPES:
        return True
    if to_type in TEXT_TYPES:
        return True
    if from_type in DATE_TYPES and to_type in DATE_TYPES:
        return True
    return False


def _number_to_text(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _short(text: str) -> str | None:
    return None if len(text) > SHORT_TEXT_MAX_LENGTH else text


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _format_date(value: datetime) -> str:
    return value.date().isoformat()


def _format_datetime(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def from_number(value: int | float, to_type: str) -> Any:
    if to_type == "integer":
        return math.trunc(value)
    if to_type == "number":
        return value
    if to_type == "longText":
        return _number_to_text(value)
    if to_type == "shortText":
        return _short(_number_to_text(value))
    return None


def from_date(value: Any, to_type: str) -> Any:
    if to_type in TEXT_TYPES:
        return str(value)
    parsed = _parse_datetime(value)
    if parsed is None:
        return None
    if to_type == "date":
        return _format_date(parsed)
    if to_type == "dateTime":
        return _format_datetime(parsed)
    return None


def from_string(value: str, to_type: str) -> Any:
    if to_type == "boolean":
        return {"true": True, "false": False}.get(value.strip().lower())
    if to_type in DATE_TYPES:
        return from_date(value, to_type)
    if to_type == "integer":
        try:
            return int(value.strip())
        except ValueError:
            try:
                return math.trunc(float(value))
            except (ValueError, OverflowError):
                return None
    if to_type == "number":
        try:
            number = float(value)
        except ValueError:
            return None
        return int(number) if number.is_integer() and "." not in value else number
    if to_type == "list":
        return [item.strip() for item in value.split(",")]
    if to_type == "person":
        return value if _EMAIL_PATTERN.match(value) else None
    if to_type == "longText":
        return value
    if to_type == "shortText":
        return _short(value)
    return None


def convert_value(value: Any, from_type: str, to_type: str) -> Any:
    """
    Convert a single card value from one data type to another.

    Args:
        value: Current value (None passes through)
        from_type: Current data type
        to_type: New data type

    Returns:
        Converted value, or None when the value cannot be represented
    """
    if value is None or from_type == to_type:
        return value
    if not conversion_allowed(from_type, to_type):
        return None

    if from_type in TEXT_TYPES:
        return from_string(str(value), to_type)
    if from_type in NUMBER_TYPES:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return from_number(value, to_type)
    if from_type in DATE_TYPES:
        return from_date(value, to_type)

    # boolean, enum, list and person only convert to text
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, list):
        text = ",".join(str(item) for item in value)
    else:
        text = str(value)
    return _short(text) if to_type == "shortText" else text
