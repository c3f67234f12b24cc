"""
Sales tax annotation by Canadian province or territory.

Rates are combined GST/HST/PST/QST rates applied to the gross amount.
"""

from decimal import Decimal
from types import MappingProxyType
from typing import NamedTuple, Optional

from .money import round_money

DEFAULT_JURISDICTION = 'Ontario'

TAX_RATES = MappingProxyType({
    'Alberta': Decimal('0.05'),
    'British Columbia': Decimal('0.12'),
    'Manitoba': Decimal('0.12'),
    'New Brunswick': Decimal('0.15'),
    'Newfoundland and Labrador': Decimal('0.15'),
    'Northwest Territories': Decimal('0.05'),
    'Nova Scotia': Decimal('0.15'),
    'Nunavut': Decimal('0.05'),
    'Ontario': Decimal('0.13'),
    'Prince Edward Island': Decimal('0.15'),
    'Quebec': Decimal('0.14975'),
    'Saskatchewan': Decimal('0.11'),
    'Yukon': Decimal('0.05'),
})

# Canada Post abbreviations
JURISDICTION_CODES = MappingProxyType({
    'AB': 'Alberta',
    'BC': 'British Columbia',
    'MB': 'Manitoba',
    'NB': 'New Brunswick',
    'NL': 'Newfoundland and Labrador',
    'NT': 'Northwest Territories',
    'NS': 'Nova Scotia',
    'NU': 'Nunavut',
    'ON': 'Ontario',
    'PE': 'Prince Edward Island',
    'QC': 'Quebec',
    'SK': 'Saskatchewan',
    'YT': 'Yukon',
})

_BY_LOWER_NAME = {name.lower(): name for name in TAX_RATES}


class TaxBreakdown(NamedTuple):
    tax: Decimal
    net: Decimal


def resolve_jurisdiction(jurisdiction: Optional[str]) -> Optional[str]:
    """
    Map a province name or two-letter code to its TAX_RATES key.

    Returns None when the jurisdiction is not recognized.
    """
    if not jurisdiction:
        return None

    key = jurisdiction.strip()
    if key in TAX_RATES:
        return key
    if key.upper() in JURISDICTION_CODES:
        return JURISDICTION_CODES[key.upper()]
    return _BY_LOWER_NAME.get(key.lower())


def tax_rate(jurisdiction: Optional[str]) -> Decimal:
    """Rate for the jurisdiction, falling back to Ontario's 13%."""
    resolved = resolve_jurisdiction(jurisdiction)
    return TAX_RATES[resolved or DEFAULT_JURISDICTION]


def annotate(amount: Decimal, jurisdiction: Optional[str]) -> TaxBreakdown:
    """
    Split a gross amount into tax and net.

    tax = round(amount x rate, 2); net = round(amount - tax, 2).

    Examples:
        >>> annotate(Decimal('5.75'), 'Ontario')
        TaxBreakdown(tax=Decimal('0.75'), net=Decimal('5.00'))
    """
    tax = round_money(amount * tax_rate(jurisdiction))
    net = round_money(amount - tax)
    return TaxBreakdown(tax=tax, net=net)
