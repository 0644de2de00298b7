"""
Formatting and parsing helpers for money, quantities and dates at the API boundary.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Union, Optional

CENT = Decimal('0.01')


def money(value: Union[int, float, Decimal, str, None]) -> Optional[str]:
    """
    Format an amount as a string with exactly two decimals.

    Examples:
        money(Decimal('39')) -> "39.00"
        money(Decimal('4.16625')) -> "4.17"
        money(None) -> None
    """
    if value is None:
        return None
    return str(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def amount_label(value: Union[Decimal, int, None]) -> str:
    """Human readable amount for error messages ("50.00")."""
    return money(value) if value is not None else '0.00'


def parse_decimal(value, field_name: str) -> Decimal:
    """
    Parse a JSON number or numeric string into Decimal.

    Floats go through str() so 0.1 becomes Decimal('0.1'), not its binary expansion.

    Raises:
        ValueError: if the value is missing or not numeric.
    """
    if value is None or value == '' or isinstance(value, bool):
        raise ValueError(f'{field_name} is required')
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f'{field_name} must be a number')
    if not result.is_finite():
        raise ValueError(f'{field_name} must be a number')
    return result


def parse_int(value, field_name: str) -> int:
    """
    Parse a whole number ("3", 3, 3.0).

    Raises:
        ValueError: if the value is missing or not a whole number.
    """
    number = parse_decimal(value, field_name)
    if number != number.to_integral_value():
        raise ValueError(f'{field_name} must be a whole number')
    return int(number)


def parse_date(value, field_name: str) -> date:
    """
    Parse an ISO date ("2026-10-19") or datetime string into a date.

    Raises:
        ValueError: if the value is missing or malformed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValueError(f'{field_name} is required')
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError(f'{field_name} must be a date (YYYY-MM-DD)')


def iso_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None
