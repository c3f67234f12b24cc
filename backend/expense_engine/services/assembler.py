"""
Expense assembler: the single entry point from document text to records.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from expense_engine.exceptions import NoDocumentsError
from expense_engine.models.expense import DocumentInput, ExpenseRecord, ProcessOptions
from expense_engine.services.categorizer import (
    CategoryClassifier,
    RuleBasedClassifier,
    UNCATEGORIZED,
)
from expense_engine.services.normalizer import normalize_statement_text, split_csv
from expense_engine.services.statement_matcher import (
    ExtractionContext,
    MatchResult,
    PAID_BY_CREDIT_CARD,
    PAID_BY_CSV,
    StatementPatternMatcher,
)
from expense_engine.utils.dedup import deduplicate
from expense_engine.utils.tax import annotate

logger = logging.getLogger(__name__)

PLACEHOLDER_DESCRIPTION = (
    "Could not detect expenses in this PDF. Try a different format or upload CSV instead."
)
PAID_BY_PDF = 'PDF Import'


class ExpenseAssembler:
    """
    Runs normalization, the strategy cascade and tax annotation for each
    document, and guarantees at least one record per document.
    """

    def __init__(
        self,
        classifier: Optional[CategoryClassifier] = None,
        matcher: Optional[StatementPatternMatcher] = None,
    ):
        self.classifier = classifier or RuleBasedClassifier()
        self.matcher = matcher or StatementPatternMatcher()

    def _context(self, options: ProcessOptions, paid_by: str, today: date) -> ExtractionContext:
        return ExtractionContext(
            classifier=self.classifier,
            categories=tuple(options.categories),
            occupation=options.occupation,
            paid_by=paid_by,
            today=today,
        )

    @staticmethod
    def placeholder(paid_by: str, today: date) -> ExpenseRecord:
        """Record emitted when a document yields no expenses."""
        return ExpenseRecord(
            date=today.isoformat(),
            paid_by=paid_by,
            description=PLACEHOLDER_DESCRIPTION,
            category=UNCATEGORIZED,
            amount=Decimal('0'),
            tax=Decimal('0'),
            net=Decimal('0'),
            needs_review=False,
        )

    def _match(self, document: DocumentInput, options: ProcessOptions, today: date) -> MatchResult:
        if document.is_csv:
            context = self._context(options, PAID_BY_CSV, today)
            return self.matcher.match_csv(split_csv(document.text), context)

        context = self._context(options, PAID_BY_CREDIT_CARD, today)
        return self.matcher.match_text(normalize_statement_text(document.text), context)

    def process_document(
        self,
        document: DocumentInput,
        options: Optional[ProcessOptions] = None,
        today: Optional[date] = None,
    ) -> List[ExpenseRecord]:
        """
        Extract tax-annotated records from one document.

        Args:
            document: Document text with optional filename and source type
            options: Province, occupation and category set
            today: Reference date for unresolvable dates and the placeholder

        Returns:
            Records in document order (CSV text fallback: sorted by date);
            a single placeholder record when nothing was found
        """
        options = options or ProcessOptions()
        today = today or date.today()

        result = self._match(document, options, today)
        expenses = deduplicate(result.expenses)

        if result.sort_by_date:
            expenses.sort(key=lambda expense: expense.date)

        if not expenses:
            paid_by = PAID_BY_CSV if document.is_csv else PAID_BY_PDF
            logger.info("No expenses detected, emitting placeholder", extra={
                "document": document.filename,
                "paid_by": paid_by,
            })
            return [self.placeholder(paid_by, today)]

        records = []
        for expense in expenses:
            breakdown = annotate(expense.amount, options.province)
            records.append(ExpenseRecord(
                date=expense.date,
                paid_by=expense.paid_by,
                description=expense.description,
                category=expense.category,
                amount=expense.amount,
                tax=breakdown.tax,
                net=breakdown.net,
                needs_review=expense.needs_review,
            ))

        logger.info("Processed document", extra={
            "document": document.filename,
            "strategy": result.strategy,
            "records": len(records),
        })
        return records

    def process_batch(
        self,
        documents: Iterable[DocumentInput],
        options: Optional[ProcessOptions] = None,
        today: Optional[date] = None,
    ) -> List[ExpenseRecord]:
        """
        Process documents independently and concatenate their records.

        Raises:
            NoDocumentsError: If the batch is empty
        """
        documents = list(documents)
        if not documents:
            raise NoDocumentsError()

        records: List[ExpenseRecord] = []
        for document in documents:
            records.extend(self.process_document(document, options, today))
        return records
