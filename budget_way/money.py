"""Money helpers shared by the engine and the presenters.

All amounts inside the engine are ``Decimal`` values quantised to the
smallest money unit so that allocations add back up to the input balance
exactly.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

from .errors import InvalidInput

MoneyLike = Union[Decimal, int, float, str]

MONEY_QUANTUM = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')


def to_money(value: MoneyLike, field: str = 'amount') -> Decimal:
    """Convert a user-supplied amount into a quantised ``Decimal``.

    Args:
        value: Amount as Decimal, int, float or numeric string
        field: Name used in the error message

    Returns:
        Decimal rounded half-up to the smallest money unit

    Raises:
        InvalidInput: If the value is missing, not numeric, or not finite

    Example:
        >>> to_money('12.345')
        Decimal('12.35')
    """
    if value is None or isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number, got {value!r}")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, float):
            # str() keeps the shortest repr, so 0.1 stays 0.1
            amount = Decimal(str(value))
        else:
            amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInput(f"{field} must be a number, got {value!r}") from exc
    if not amount.is_finite():
        raise InvalidInput(f"{field} must be finite, got {value!r}")
    try:
        return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        # more digits than the decimal context can hold
        raise InvalidInput(f"{field} is too large, got {value!r}") from exc


def money_sum(values: Iterable[Decimal]) -> Decimal:
    """Sum money values, returning a quantised zero for an empty iterable."""
    return sum(values, ZERO)


def percent_of(current: Decimal, target: Decimal) -> Decimal:
    """Unrounded ``current / target * 100``; callers handle ``target == 0``."""
    return current / target * HUNDRED


def format_currency(amount: MoneyLike, include_sign: bool = True) -> str:
    """Format a currency amount with thousands separators.

    Args:
        amount: The amount to format
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "1,234.56")

    Example:
        >>> format_currency(Decimal('1234.5'))
        '$1,234.50'
        >>> format_currency(-20, include_sign=False)
        '-20.00'
    """
    value = to_money(amount)
    formatted = f"{abs(value):,.2f}"
    sign = '-' if value < 0 else ''
    return f"{sign}${formatted}" if include_sign else f"{sign}{formatted}"
