"""
Accounting CSV export.

The layout is fixed: a transaction table, a summary block, per-category
totals in first-seen order and an optional mileage block.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from .money import format_csv_money, format_plain, format_shortest, round_money

CSV_HEADERS = ['Date', 'Paid By', 'Description', 'GL Account', 'Amount', 'HST', 'Net', 'Needs Review']

# Category whose total feeds the mileage block; other vehicle costs such as Gas are excluded
TRANSPORTATION_CATEGORY = 'Transportation'


def summarize_by_category(records: Iterable) -> Dict[str, Decimal]:
    """Total amounts per category, in first-seen order."""
    totals: Dict[str, Decimal] = OrderedDict()
    for record in records:
        totals[record.category] = totals.get(record.category, Decimal('0')) + record.amount
    return totals


def _quote(text: str) -> str:
    return '"' + (text or '').replace('"', '""') + '"'


def _record_row(record) -> str:
    return ','.join([
        record.date,
        record.paid_by,
        _quote(record.description),
        record.category,
        format_plain(record.amount),
        format_plain(record.tax),
        format_plain(record.net),
        'Yes' if record.needs_review else 'No',
    ])


def _mileage_block(mileage, by_category: Dict[str, Decimal]) -> str:
    transportation = by_category.get(TRANSPORTATION_CATEGORY, Decimal('0'))
    percentage = mileage.work_percentage or Decimal('0')

    return '\n'.join([
        'Mileage Information',
        f"Total Kilometers,,{format_shortest(mileage.total_kms)}",
        f"Work Kilometers,,{format_shortest(mileage.work_kms)}",
        f"Work Percentage,,{format_plain(percentage)}%",
        f"Total Transportation Expenses,,${format_shortest(transportation)}",
        f"Work Transportation Expenses,,{format_csv_money(transportation * percentage / 100)}",
    ])


def generate_csv(
    records: Sequence,
    mileage=None,
    by_category: Optional[Dict[str, Decimal]] = None,
) -> str:
    """
    Render records as the accounting CSV.

    Args:
        records: ExpenseRecord-like objects
        mileage: Optional MileageInfo for the mileage block
        by_category: Category totals; computed from records when omitted

    Returns:
        CSV text (no trailing newline after the last block)
    """
    if by_category is None:
        by_category = summarize_by_category(records)

    total = round_money(sum((record.amount for record in records), Decimal('0')))

    lines: List[str] = [','.join(CSV_HEADERS)]
    lines.extend(_record_row(record) for record in records)
    lines.extend([
        '',
        'Summary',
        f"Total Expenses,,{format_csv_money(total)}",
        '',
        'By Category',
    ])
    lines.extend(f"{category},,{format_csv_money(amount)}" for category, amount in by_category.items())
    lines.append('')
    lines.append(_mileage_block(mileage, by_category) if mileage else '')

    return '\n'.join(lines)
