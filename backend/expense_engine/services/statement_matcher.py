"""
Statement pattern matcher: a cascade of extraction strategies.

Each strategy pulls raw (date, description, amount) candidates out of a
document and turns them into validated expenses through the same steps:
date parsing, amount extraction, categorization and duplicate suppression.
The matcher runs strategies in priority order and stops at the first one
that produces expenses.
"""

import re
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

from expense_engine.services.categorizer import (
    CategoryClassifier,
    UNCATEGORIZED,
    map_csv_category,
)
from expense_engine.services.normalizer import CsvTable
from expense_engine.utils.candidates import (
    DESCRIPTION_MAX_LENGTH,
    ExtractedExpense,
    RawCandidate,
    clean_description,
    create_raw_candidate,
)
from expense_engine.utils.dates import parse_date, parse_date_with_year
from expense_engine.utils.dedup import Deduplicator
from expense_engine.utils.money import extract_amount
from expense_engine.utils.patterns import (
    AMOUNT,
    AMOUNT_SUFFIX,
    ANY_DATE,
    ANY_DATE_TOKEN,
    FULL_DATE,
    SHORT_DATE,
    STATEMENT_KEYWORDS,
)

logger = logging.getLogger(__name__)

PAID_BY_CREDIT_CARD = 'Credit Card'
PAID_BY_CSV = 'CSV Import'
PAID_BY_RECEIPT = 'Receipt'

_HAS_LETTER = re.compile(r'[A-Za-z]')


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    priority: Optional[int] = None
    flags: int = re.IGNORECASE | re.MULTILINE
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))


@dataclass
class SourceDocument:
    """Normalized text, plus the split table when the input was CSV."""
    text: str
    table: Optional[CsvTable] = None


@dataclass
class ExtractionContext:
    """Per-document inputs shared by every strategy in one run."""
    classifier: CategoryClassifier
    categories: Sequence[str]
    occupation: Optional[str] = None
    paid_by: str = PAID_BY_CREDIT_CARD
    today: date = field(default_factory=date.today)
    dedup: Deduplicator = field(default_factory=Deduplicator)


@dataclass
class MatchResult:
    expenses: List[ExtractedExpense]
    strategy: Optional[str] = None
    sort_by_date: bool = False


class ExtractionStrategy:
    """Base strategy: subclasses supply candidates, the base validates them."""

    name = 'base'
    paid_by: Optional[str] = None
    description_max_length = DESCRIPTION_MAX_LENGTH
    infer_missing_year = False

    def find_candidates(self, source: SourceDocument, context: ExtractionContext) -> List[RawCandidate]:
        raise NotImplementedError

    def resolve_date(self, candidate: RawCandidate, context: ExtractionContext) -> str:
        if not candidate.date_text:
            return context.today.isoformat()
        if self.infer_missing_year:
            return parse_date_with_year(candidate.date_text, today=context.today)
        return parse_date(candidate.date_text, today=context.today)

    def categorize(self, candidate: RawCandidate, description: str,
                   context: ExtractionContext) -> Tuple[str, bool]:
        """Return (category, needs_review) for a candidate."""
        mapped = map_csv_category(candidate.category_hint)
        if mapped:
            return mapped, False

        result = context.classifier.classify(description, context.occupation, context.categories)
        return result.category, result.is_unsure

    def build_expense(self, candidate: RawCandidate, context: ExtractionContext) -> Optional[ExtractedExpense]:
        amount = extract_amount(candidate.amount_text)
        if amount is None:
            return None

        description = clean_description(candidate.description, self.description_max_length)
        category, needs_review = self.categorize(candidate, description, context)

        return ExtractedExpense(
            date=self.resolve_date(candidate, context),
            paid_by=self.paid_by or context.paid_by,
            description=description,
            amount=amount,
            category=category,
            needs_review=needs_review,
            pattern_name=candidate.pattern_name,
        )

    def extract(self, source: SourceDocument, context: ExtractionContext) -> List[ExtractedExpense]:
        """
        Run this strategy over a document.

        Candidates with unparseable or zero amounts are discarded, as are
        repeats of expenses already accepted in this run.

        Returns:
            Accepted expenses in document order (possibly empty)
        """
        try:
            candidates = self.find_candidates(source, context)
        except (re.error, IndexError, ValueError):
            logger.warning("Error running %s strategy", self.name, exc_info=True)
            return []

        expenses = []
        for candidate in candidates:
            expense = self.build_expense(candidate, context)
            if expense is None:
                continue
            if context.dedup.add(expense):
                expenses.append(expense)

        logger.debug("Strategy %s: %d candidate(s), %d accepted",
                     self.name, len(candidates), len(expenses))
        return expenses


class RegexLineStrategy(ExtractionStrategy):
    """Strategy driven by PatternSpecs with date/description/amount groups."""

    patterns: Tuple[PatternSpec, ...] = ()

    def find_candidates(self, source: SourceDocument, context: ExtractionContext) -> List[RawCandidate]:
        candidates = []
        for spec in self.patterns:
            for match in spec.compiled.finditer(source.text):
                groups = match.groupdict()
                description = groups.get('description') or ''
                if not _HAS_LETTER.search(description):
                    continue
                candidates.append(create_raw_candidate(
                    date_text=groups.get('date'),
                    description=description,
                    amount_text=groups['amount'],
                    pattern_name=spec.name,
                ))
        return candidates


# Description: starts at a non-space that does not begin another date
_DESCRIPTION = rf'(?P<description>(?!{SHORT_DATE}\s)\S[^\n]*?)'
_LINE_AMOUNT = rf'[ \t]+(?P<amount>{AMOUNT}){AMOUNT_SUFFIX}[ \t]*$'


class LabeledDateStrategy(RegexLineStrategy):
    """One transaction per line: date, free text, amount."""

    name = 'labeled_date'
    patterns = (
        PatternSpec(
            name='date_text_amount',
            pattern=rf'^[ \t]*(?P<date>{FULL_DATE})[ \t]+{_DESCRIPTION}{_LINE_AMOUNT}',
            example='03/14/2024 Tim Hortons 5.75',
            notes='Generic statement line; the date must carry a year',
        ),
    )


class KeywordPrefixedStrategy(RegexLineStrategy):
    """Vendor layouts that label the date (POSTED, Transaction date)."""

    name = 'keyword_prefixed'
    infer_missing_year = True
    patterns = (
        PatternSpec(
            name='posted_or_transaction_date',
            pattern=(
                rf'(?:\bposted(?:[ \t]+on)?|\btransaction[ \t]+date)[: \t]+'
                rf'(?P<date>{ANY_DATE})[ \t]+{_DESCRIPTION}{_LINE_AMOUNT}'
            ),
            example='POSTED 03/14 TIM HORTONS #123 5.75',
            notes='Year-less dates take the current year',
        ),
    )


class DualDateStrategy(RegexLineStrategy):
    """Posting date then transaction date; the transaction date is kept."""

    name = 'dual_date'
    infer_missing_year = True
    patterns = (
        PatternSpec(
            name='posting_and_transaction_date',
            pattern=(
                rf'^[ \t]*(?P<posted>{SHORT_DATE})[ \t]+(?P<date>{SHORT_DATE})[ \t]+'
                rf'{_DESCRIPTION}{_LINE_AMOUNT}'
            ),
            example='MAR 14 MAR 15 TIM HORTONS 5.75',
            notes='CIBC-style two-column dates',
        ),
    )


class AggressiveFallbackStrategy(RegexLineStrategy):
    """Currency-prefixed amounts followed by text; no date is locatable."""

    name = 'aggressive_fallback'
    description_max_length = 50
    patterns = (
        PatternSpec(
            name='symbol_amount_then_text',
            pattern=(
                r'[$€£]\s*(?P<amount>\d+(?:,\d{3})*(?:\.\d{2})?)\s*'
                r'(?P<description>[A-Za-z][^\n]{5,}?)(?=[$€£]|\d{1,2}/\d{1,2}|$)'
            ),
            example='$12.50 Parking downtown',
            flags=re.MULTILINE,
        ),
    )

    def resolve_date(self, candidate: RawCandidate, context: ExtractionContext) -> str:
        return context.today.isoformat()


class StructuredColumnStrategy(ExtractionStrategy):
    """
    CSV exports: map header names to column roles, or infer the roles from
    sample rows when the headers are not recognizable.
    """

    name = 'structured_column'

    DATE_HEADERS = ('date', 'time', 'when')
    DESCRIPTION_HEADERS = ('desc', 'detail', 'merchant', 'transaction', 'narration', 'particulars')
    AMOUNT_HEADERS = ('amount', 'total', 'sum', 'value', 'debit', 'credit')
    CATEGORY_HEADERS = ('category', 'type', 'classification', 'group')

    SAMPLE_ROWS = 4

    DATE_CELL = re.compile(
        r'^(?:\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}|\d{4}[-/.]\d{1,2}[-/.]\d{1,2}|[A-Za-z]{3,9}\s+\d{1,2},?\s*\d{4})$'
    )
    AMOUNT_CELL = re.compile(r'^[$\-+]?\(?[$\-]?\d+(?:\.\d{1,2})?\)?$')

    @staticmethod
    def _find_column(headers: List[str], keywords: Sequence[str], taken: set) -> Optional[int]:
        for keyword in keywords:
            for idx, header in enumerate(headers):
                if idx not in taken and keyword in header:
                    return idx
        return None

    def map_headers(self, header: List[str]) -> Optional[dict]:
        headers = [h.strip().lower() for h in header]
        taken: set = set()
        columns = {}

        for role, keywords in (
            ('date', self.DATE_HEADERS),
            ('amount', self.AMOUNT_HEADERS),
            ('description', self.DESCRIPTION_HEADERS),
        ):
            idx = self._find_column(headers, keywords, taken)
            if idx is None:
                return None
            columns[role] = idx
            taken.add(idx)

        # Split debit/credit exports: read credits when the debit cell is empty
        if 'debit' in headers[columns['amount']]:
            credit_idx = self._find_column(headers, ('credit',), taken)
            if credit_idx is not None:
                columns['credit'] = credit_idx
                taken.add(credit_idx)

        category_idx = self._find_column(headers, self.CATEGORY_HEADERS, taken)
        if category_idx is not None:
            columns['category'] = category_idx

        return columns

    def infer_columns(self, rows: List[List[str]]) -> Optional[dict]:
        """Guess date, amount and description columns from cell shapes."""
        for row in rows[:self.SAMPLE_ROWS]:
            cells = [cell.strip() for cell in row]

            date_idx = next((i for i, cell in enumerate(cells) if self.DATE_CELL.match(cell)), None)
            if date_idx is None:
                continue

            amount_idx = next(
                (i for i, cell in enumerate(cells)
                 if i != date_idx and self.AMOUNT_CELL.match(re.sub(r'[,\s]', '', cell))),
                None,
            )
            if amount_idx is None:
                continue

            description_idx = None
            longest = 0
            for i, cell in enumerate(cells):
                if i not in (date_idx, amount_idx) and len(cell) > longest:
                    longest = len(cell)
                    description_idx = i
            if description_idx is None:
                continue

            return {'date': date_idx, 'amount': amount_idx, 'description': description_idx}

        return None

    def find_candidates(self, source: SourceDocument, context: ExtractionContext) -> List[RawCandidate]:
        table = source.table
        if table is None:
            return []

        rows = table.rows
        columns = self.map_headers(table.header)
        pattern_name = 'header_columns'

        if columns is None:
            columns = self.infer_columns(table.rows)
            pattern_name = 'inferred_columns'
            if columns is None:
                logger.info("CSV columns not recognized", extra={"header": table.header})
                return []
            # Without recognizable headers the first line may already be data
            header = table.header
            if len(header) > columns['date'] and self.DATE_CELL.match(header[columns['date']].strip()):
                rows = [header] + rows

        logger.debug("CSV column roles", extra={"columns": columns, "mode": pattern_name})

        needed = max(columns['date'], columns['amount'], columns['description'])
        candidates = []
        for row in rows:
            if len(row) <= needed:
                continue

            amount_text = row[columns['amount']]
            credit_idx = columns.get('credit')
            if not amount_text and credit_idx is not None and credit_idx < len(row):
                amount_text = row[credit_idx]

            category_idx = columns.get('category')
            category_hint = row[category_idx] if category_idx is not None and category_idx < len(row) else None

            candidates.append(create_raw_candidate(
                date_text=row[columns['date']],
                description=row[columns['description']],
                amount_text=amount_text,
                pattern_name=pattern_name,
                category_hint=category_hint,
            ))

        return candidates


class SingleTotalStrategy(ExtractionStrategy):
    """
    Receipts and invoices: one labelled total, an optional labelled date and
    an optional labelled item. Produces at most one expense.
    """

    name = 'single_total'
    paid_by = PAID_BY_RECEIPT

    UNKNOWN_DESCRIPTION = 'Unknown purchase'

    _TOTAL_AMOUNT = r'(?P<amount>[$€£]?\s*\d[\d,]*(?:\.\d{2})?)'

    total_patterns = (
        PatternSpec(
            name='explicit_payment',
            pattern=rf'(?:amount\s+paid|total\s+paid|grand\s+total|final\s+total|amount\s+due)[ \t:]*{_TOTAL_AMOUNT}',
            example='Amount Paid: $59.52',
            notes='Explicit payment indicators (highest confidence)',
            priority=1,
        ),
        PatternSpec(
            name='total_strong_context',
            pattern=rf'(?:^|\|)[ \t]*total[ \t:]+{_TOTAL_AMOUNT}',
            example='Total: $59.52',
            notes='Total at the start of a line',
            priority=2,
        ),
        PatternSpec(
            name='generic_total',
            pattern=rf'(?<!sub)(?<!sub )(?:total|amount|sum|payment|charge|price)[ \t]*:?[ \t]*{_TOTAL_AMOUNT}',
            example='Charge $42.00',
            notes='Generic total/amount (exclude subtotal)',
            priority=3,
        ),
    )

    date_pattern = PatternSpec(
        name='labelled_date',
        pattern=rf'(?:date|issued|receipt)[ \t]*:?[ \t]*(?P<date>{FULL_DATE})',
        example='Date: 03/14/2024',
    )

    item_pattern = PatternSpec(
        name='labelled_item',
        pattern=r'(?:item|product|service|description)[ \t]*:?[ \t]*(?P<item>[A-Za-z][^\n]*)',
        example='Item: Printer paper',
    )

    SKIP_LINE = re.compile(r'page|pdf|statement|invoice|receipt', re.IGNORECASE)

    def _find_total(self, text: str) -> Optional[re.Match]:
        for spec in sorted(self.total_patterns, key=lambda s: s.priority or 100):
            for match in spec.compiled.finditer(text):
                if extract_amount(match.group('amount')) is not None:
                    return match
        return None

    def _describe(self, text: str) -> Tuple[str, bool]:
        """Return (description, from_item) for the receipt."""
        item = self.item_pattern.compiled.search(text)
        if item:
            return item.group('item'), True

        for line in text.split('\n'):
            stripped = line.strip()
            if not stripped or self.SKIP_LINE.search(stripped):
                continue
            if any(spec.compiled.search(stripped) for spec in self.total_patterns):
                continue
            if not _HAS_LETTER.search(stripped):
                continue
            return stripped, False

        return self.UNKNOWN_DESCRIPTION, False

    def find_candidates(self, source: SourceDocument, context: ExtractionContext) -> List[RawCandidate]:
        total = self._find_total(source.text)
        if total is None:
            return []

        date_match = self.date_pattern.compiled.search(source.text)
        description, from_item = self._describe(source.text)
        pattern_name = self._spec_name(total)

        return [create_raw_candidate(
            date_text=date_match.group('date') if date_match else None,
            description=description,
            amount_text=total.group('amount'),
            pattern_name=f"{pattern_name}+item" if from_item else pattern_name,
        )]

    def _spec_name(self, match: re.Match) -> str:
        for spec in self.total_patterns:
            if spec.compiled is match.re:
                return spec.name
        return 'total'

    def categorize(self, candidate: RawCandidate, description: str,
                   context: ExtractionContext) -> Tuple[str, bool]:
        # Only labelled item text is trusted for categorization
        if not candidate.pattern_name.endswith('+item'):
            return UNCATEGORIZED, True

        result = context.classifier.classify(description, context.occupation, context.categories)
        if result.is_unsure:
            return UNCATEGORIZED, True
        return result.category, False


def is_transaction_list(text: str) -> bool:
    """True when text has a date-like token or a statement keyword."""
    return bool(STATEMENT_KEYWORDS.search(text) or ANY_DATE_TOKEN.search(text))


class StatementPatternMatcher:
    """
    Ordered strategy cascade.

    Statement text: labeled-date, keyword-prefixed, dual-date, then the
    aggressive fallback, then single-total. Non-statement text goes straight
    to single-total. CSV: structured columns, then the text cascade over the
    flattened rows (results sorted by date).
    """

    def __init__(
        self,
        statement_strategies: Optional[Sequence[ExtractionStrategy]] = None,
        fallback_strategy: Optional[ExtractionStrategy] = None,
        single_total_strategy: Optional[ExtractionStrategy] = None,
        column_strategy: Optional[ExtractionStrategy] = None,
    ):
        self.statement_strategies = list(statement_strategies or (
            LabeledDateStrategy(),
            KeywordPrefixedStrategy(),
            DualDateStrategy(),
        ))
        self.fallback_strategy = fallback_strategy or AggressiveFallbackStrategy()
        self.single_total_strategy = single_total_strategy or SingleTotalStrategy()
        self.column_strategy = column_strategy or StructuredColumnStrategy()

    @staticmethod
    def _cascade(strategies: Sequence[ExtractionStrategy], source: SourceDocument,
                 context: ExtractionContext) -> MatchResult:
        for strategy in strategies:
            expenses = strategy.extract(source, context)
            if expenses:
                logger.info("Extracted %d expense(s) with %s", len(expenses), strategy.name)
                return MatchResult(expenses=expenses, strategy=strategy.name)
        return MatchResult(expenses=[])

    def match_text(self, text: str, context: ExtractionContext) -> MatchResult:
        """Extract expenses from normalized statement or receipt text."""
        if not text:
            return MatchResult(expenses=[])

        source = SourceDocument(text=text)

        if not is_transaction_list(text):
            logger.debug("No statement markers, using single-total extraction")
            return self._cascade([self.single_total_strategy], source, context)

        return self._cascade(
            self.statement_strategies + [self.fallback_strategy, self.single_total_strategy],
            source,
            context,
        )

    def match_csv(self, table: Optional[CsvTable], context: ExtractionContext) -> MatchResult:
        """Extract expenses from a split CSV export."""
        if table is None:
            return MatchResult(expenses=[])

        result = self._cascade([self.column_strategy], SourceDocument(text='', table=table), context)
        if result.expenses:
            return result

        logger.info("CSV columns yielded nothing, scanning rows as text")
        flattened = SourceDocument(text=table.flatten(), table=table)
        result = self._cascade(self.statement_strategies + [self.fallback_strategy], flattened, context)
        result.sort_by_date = True
        return result
