"""
Shared money utilities for statement amounts.

Handles tokens such as:
- Symbol prefixed: $1,234.56, €12.00, CA$6.99
- Signed: -1234.56, (12.34)
- Bare numbers: 1234.56, 45

Sign is not meaningful for expenses: debits and credits both come back as
positive amounts.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
import re

CENT = Decimal('0.01')

_NON_NUMERIC = re.compile(r'[^\d.\-]')


def extract_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """
    Parse a currency-like token into a positive Decimal.

    Every character other than digits, the decimal point and a leading minus
    is stripped before parsing.

    Args:
        amount_str: Token containing an amount (e.g., "$1,234.56", "-45.00 CR")

    Returns:
        Absolute Decimal amount, or None for zero and non-numeric tokens

    Examples:
        >>> extract_amount("$1,234.56")
        Decimal('1234.56')
        >>> extract_amount("-1234.56")
        Decimal('1234.56')
        >>> extract_amount("n/a") is None
        True
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    cleaned = _NON_NUMERIC.sub('', amount_str.strip())

    # Only a leading minus survives; anything after the first digit is noise
    cleaned = cleaned[:1] + cleaned[1:].replace('-', '')
    if cleaned.startswith('-'):
        cleaned = cleaned[1:]

    if not cleaned or cleaned == '.':
        return None

    try:
        amount = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return None

    if not amount.is_finite() or amount == 0:
        return None

    return abs(amount)


def round_money(amount: Decimal) -> Decimal:
    """Round half-up to whole cents."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def amounts_match(first: Decimal, second: Decimal, tolerance: Decimal = CENT) -> bool:
    """True when two amounts differ by at most the tolerance (one cent by default)."""
    return abs(first - second) <= tolerance


def format_plain(amount: Decimal) -> str:
    """
    Format an amount with exactly two decimals and no grouping (e.g., "1234.50").
    """
    return f"{round_money(amount):.2f}"


def format_shortest(amount: Decimal) -> str:
    """
    Format an amount without trailing zeros (e.g., 45.50 -> "45.5", 0 -> "0").
    """
    normalized = amount.normalize()
    if normalized == 0:
        return '0'
    return format(normalized, 'f')


def format_csv_money(amount: Decimal) -> str:
    """
    Format an amount for CSV summary cells (e.g., "$1234.50", no grouping).
    """
    return f"${format_plain(amount)}"
