"""
Candidate dataclasses for statement extraction.

A RawCandidate is the unvalidated text triple a strategy pulls out of a
document. An ExtractedExpense is what survives parsing: a resolved date, a
positive amount and a category, ready for tax annotation.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
import re

DESCRIPTION_MAX_LENGTH = 100


@dataclass(frozen=True)
class RawCandidate:
    """
    Extraction hypothesis prior to validation.

    date_text is None when the producing strategy could not locate a date.
    category_hint carries a CSV category cell when the export has one.
    """
    date_text: Optional[str]
    description: str
    amount_text: str
    pattern_name: str = ""
    category_hint: Optional[str] = None


@dataclass
class ExtractedExpense:
    """Validated candidate before tax annotation."""
    date: str  # ISO format: YYYY-MM-DD
    paid_by: str
    description: str
    amount: Decimal
    category: str
    needs_review: bool = False
    pattern_name: str = ""


def clean_description(text: Optional[str], max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    """
    Collapse whitespace and cap the length of a description.

    Over-long text is cut at max_length and suffixed with "...".
    """
    if not text:
        return ""

    cleaned = re.sub(r'\s+', ' ', text).strip()
    cleaned = cleaned.strip(' ,;|-')

    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length].rstrip() + '...'

    return cleaned


def create_raw_candidate(
    date_text: Optional[str],
    description: str,
    amount_text: str,
    pattern_name: str,
    category_hint: Optional[str] = None,
) -> RawCandidate:
    """Build a RawCandidate with stripped text fields."""
    return RawCandidate(
        date_text=date_text.strip() if date_text else None,
        description=(description or '').strip(),
        amount_text=(amount_text or '').strip(),
        pattern_name=pattern_name,
        category_hint=category_hint.strip() if category_hint else None,
    )
