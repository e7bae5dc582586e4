"""
String helpers for seat fields, phone numbers and money amounts.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

_NON_DIGITS = re.compile(r"\D")


def count_seat_entries(value: Any) -> int:
    """
    Number of seats a seat field stands for.

    Blank is 0, otherwise the count of non-empty comma separated segments:
    '1,2,3' -> 3, 'A4' -> 1, '5' -> 1.
    """
    if value is None:
        return 0
    text = str(value).strip()
    if not text:
        return 0
    return len([item for item in text.split(",") if item.strip()])


def requested_seat_count(value: Any) -> int:
    """
    Seat count for a customer request.

    Before assignment the field holds a plain number of seats ('3' means
    three seats); anything else is read as a seat list.
    """
    if isinstance(value, int):
        return max(value, 0)
    text = str(value).strip() if value is not None else ""
    if text.isdigit():
        return int(text)
    return count_seat_entries(text)


def digits_only(phone: Any) -> str:
    return _NON_DIGITS.sub("", str(phone or ""))


def phone_match_key(phone: Any, digits: int = 9) -> str:
    """Trailing digits used to match a phone across country-code formats."""
    return digits_only(phone)[-digits:]


def parse_amount(value: Any) -> Decimal:
    """Money amount from a number or a '5,400' style string; 0 when unusable."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite() or amount < 0:
        return Decimal("0")
    return amount


def format_amount(amount: Decimal) -> str:
    """Plain digits without grouping or exponent: Decimal('5400.00') -> '5400'."""
    return f"{amount.normalize():f}"
