"""
Duplicate suppression for extracted expenses.

Overlapping regex matches and repeated rows in exports can produce the same
transaction more than once. Two expenses are the same transaction when date
and description are equal and the amounts are within one cent.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Protocol

from .money import CENT, amounts_match

logger = logging.getLogger(__name__)


class _Triple(Protocol):
    date: str
    description: str
    amount: Decimal


class Deduplicator:
    """Accumulates accepted expenses and rejects repeats."""

    def __init__(self, tolerance: Decimal = CENT):
        self.tolerance = tolerance
        self._accepted: List[_Triple] = []

    def is_duplicate(self, expense: _Triple) -> bool:
        return any(
            seen.date == expense.date
            and seen.description == expense.description
            and amounts_match(seen.amount, expense.amount, self.tolerance)
            for seen in self._accepted
        )

    def add(self, expense: _Triple) -> bool:
        """
        Accept an expense unless it repeats one already accepted.

        Returns:
            True if accepted, False if dropped as a duplicate
        """
        if self.is_duplicate(expense):
            logger.debug("Dropping duplicate expense", extra={
                "date": expense.date,
                "description": expense.description,
                "amount": str(expense.amount),
            })
            return False

        self._accepted.append(expense)
        return True


def deduplicate(expenses: Iterable[_Triple], tolerance: Decimal = CENT) -> list:
    """Return expenses in original order with repeats removed."""
    dedup = Deduplicator(tolerance)
    return [expense for expense in expenses if dedup.add(expense)]
