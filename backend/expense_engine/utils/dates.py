"""
Date parsing for statement and receipt tokens.

Every entry point returns a fully resolved ISO date (YYYY-MM-DD). Tokens that
cannot be interpreted resolve to today's date rather than raising.
"""

import re
import logging
from datetime import date, datetime
from typing import Optional

from dateutil import parser as dtparse

logger = logging.getLogger(__name__)

MIN_PLAUSIBLE_YEAR = 1970

# Sentinel default so dateutil does not silently fill in a missing year
_NO_YEAR = datetime(1, 1, 1)

ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
NUMERIC_TRIPLE = re.compile(r'^(\d{1,4})([/\-])(\d{1,2})\2(\d{1,4})$')
TEXTUAL_MONTH = re.compile(r'([A-Za-z]{3,9})\.?\s+(\d{1,2})(?:,|\s+)?\s*(\d{4})')
YEARLESS_NUMERIC = re.compile(r'^\d{1,2}[/\-.]\d{1,2}$')
YEARLESS_TEXTUAL = re.compile(r'^[A-Za-z]{3,9}\.?\s+\d{1,2}$')


def _today(today: Optional[date]) -> date:
    return today or date.today()


def _is_plausible(value: date, today: date) -> bool:
    return MIN_PLAUSIBLE_YEAR <= value.year <= today.year + 1


def _expand_year(year: int) -> int:
    """Two-digit years are taken as 20xx."""
    return 2000 + year if year < 100 else year


def _try_generic(token: str) -> Optional[date]:
    try:
        return dtparse.parse(token, default=_NO_YEAR, dayfirst=False, fuzzy=False).date()
    except (ValueError, OverflowError):
        return None


def _try_numeric_orderings(token: str) -> Optional[date]:
    """Try month-day-year, then day-month-year, for slash or dash triples."""
    match = NUMERIC_TRIPLE.match(token)
    if not match:
        return None

    first, _, second, third = match.groups()
    year = _expand_year(int(third))

    for month, day in ((int(first), int(second)), (int(second), int(first))):
        try:
            return date(year, month, day)
        except ValueError:
            continue

    return None


def _try_textual_month(token: str) -> Optional[date]:
    """Parse "Jan 01, 2023" / "January 1 2023" style tokens."""
    match = TEXTUAL_MONTH.search(token)
    if not match:
        return None

    month, day, year = match.groups()
    for fmt in ('%b %d %Y', '%B %d %Y'):
        try:
            return datetime.strptime(f"{month[:9]} {day} {year}", fmt).date()
        except ValueError:
            continue

    # "Sept" and other four-letter abbreviations
    try:
        return datetime.strptime(f"{month[:3]} {day} {year}", '%b %d %Y').date()
    except ValueError:
        return None


def parse_date(date_str: Optional[str], today: Optional[date] = None) -> str:
    """
    Convert an arbitrary date-like token into an ISO date string.

    Strategies are tried in order and the first plausible result wins:
    ISO passthrough, generic parsing, numeric M/D/Y then D/M/Y, and textual
    "Mon DD, YYYY". Ambiguous tokens such as 03/04/2024 resolve month-first.

    Args:
        date_str: Raw token (e.g., "03/14/2024", "Jan 01, 2023", "03/14")
        today: Reference date for the fallback (defaults to date.today())

    Returns:
        Date in YYYY-MM-DD format (today's date when nothing parses)
    """
    ref = _today(today)
    token = (date_str or '').strip()

    if not token:
        return ref.isoformat()

    if ISO_DATE.match(token):
        try:
            date.fromisoformat(token)
            return token
        except ValueError:
            pass

    for attempt in (_try_generic, _try_numeric_orderings, _try_textual_month):
        parsed = attempt(token)
        if parsed is not None and _is_plausible(parsed, ref):
            return parsed.isoformat()

    logger.debug("Unparseable date token %r, using today", token)
    return ref.isoformat()


def has_year(date_str: str) -> bool:
    """False for tokens like "03/14" or "Mar 14" that carry no year."""
    token = date_str.strip()
    return not (YEARLESS_NUMERIC.match(token) or YEARLESS_TEXTUAL.match(token))


def parse_date_with_year(date_str: Optional[str], year: Optional[int] = None,
                         today: Optional[date] = None) -> str:
    """
    Parse a token, appending a year first when the token has none.

    Statement layouts that print "03/14" or "MAR 14" rely on the statement
    year; the current year is used when no year is supplied.
    """
    ref = _today(today)
    token = (date_str or '').strip()

    if token and not has_year(token):
        year = year or ref.year
        if YEARLESS_NUMERIC.match(token):
            token = f"{re.sub(r'[.-]', '/', token)}/{year}"
        else:
            token = f"{token}, {year}"

    return parse_date(token, today=ref)
