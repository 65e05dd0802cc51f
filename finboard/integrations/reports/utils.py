"""
Report Utilities
Shared helpers for provider report processing: value parsing,
SDK object serialization, and calendar month arithmetic.
"""

import logging
from calendar import monthrange
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)

MONTH_LABELS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)

CURRENCY_SYMBOLS = ("$", "£", "€", "USD", "EUR", "GBP", "AUD", "NZD", "CAD")


def to_json_serializable(obj: Any) -> Any:
    """
    Recursively convert any object to JSON-serializable format.

    Handles Xero SDK objects, enums, dates, decimals, etc.

    Args:
        obj: Object to convert

    Returns:
        JSON-serializable representation
    """
    if obj is None:
        return None

    if isinstance(obj, dict):
        return {k: to_json_serializable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple)):
        return [to_json_serializable(item) for item in obj]

    # Xero SDK models
    if hasattr(obj, "to_dict"):
        return to_json_serializable(obj.to_dict())

    if isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, Decimal):
        return float(obj)

    if isinstance(obj, (date, datetime)):
        return obj.isoformat()

    # Enums
    if hasattr(obj, "value"):
        return to_json_serializable(obj.value)

    return str(obj)


def parse_currency_value(value: Any) -> Optional[Decimal]:
    """
    Parse a report cell value into a Decimal.

    Handles:
    - Thousands separators: "1,234.56" -> 1234.56
    - Currency symbols: $, £, €, USD, EUR, GBP, etc.
    - Parentheses for negatives: (500.00) -> -500.00
    - Native numbers

    Args:
        value: Raw cell value (string, number, None)

    Returns:
        Decimal value, or None when the value is empty or not numeric.
        None must be treated as "no value", never as zero.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        parsed = Decimal(str(value))
        return parsed if parsed.is_finite() else None

    value_str = str(value).strip()
    if not value_str or value_str in ("-", "—", "–"):
        return None

    for symbol in CURRENCY_SYMBOLS:
        value_str = value_str.replace(symbol, "").strip()

    if value_str.startswith("(") and value_str.endswith(")"):
        value_str = "-" + value_str[1:-1].strip()

    value_str = value_str.replace(",", "").replace(" ", "")

    try:
        parsed = Decimal(value_str)
    except InvalidOperation:
        logger.debug("Skipping non-numeric cell value %r", value)
        return None

    # Decimal accepts "NaN" and "Infinity"
    if not parsed.is_finite():
        return None
    return parsed


def parse_amount(value: Any) -> Optional[float]:
    """Parse a cell value as an absolute float, or None if not numeric."""
    parsed = parse_currency_value(value)
    if parsed is None:
        return None
    return float(abs(parsed))


def get_month_date_range(year: int, month: int) -> tuple[date, date]:
    """Get the start and end dates for a given month."""
    start_date = date(year, month, 1)
    _, last_day = monthrange(year, month)
    end_date = date(year, month, last_day)
    return start_date, end_date


def get_month_end(target_date: date) -> date:
    """Return the last day of the month for the given date."""
    return date(target_date.year, target_date.month, monthrange(target_date.year, target_date.month)[1])


def shift_month(target_date: date, months: int) -> date:
    """First day of the month `months` away from target_date (negative goes back)."""
    index = target_date.year * 12 + (target_date.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_label(target_date: date) -> str:
    """Three-letter upper-case month label, e.g. JAN."""
    return MONTH_LABELS[target_date.month - 1]
