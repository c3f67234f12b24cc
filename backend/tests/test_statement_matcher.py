"""
Tests for the extraction strategies and the strategy cascade.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from datetime import date
from decimal import Decimal

from expense_engine.config import settings
from expense_engine.services.categorizer import RuleBasedClassifier, UNCATEGORIZED
from expense_engine.services.normalizer import split_csv
from expense_engine.services.statement_matcher import (
    AggressiveFallbackStrategy,
    DualDateStrategy,
    ExtractionContext,
    KeywordPrefixedStrategy,
    LabeledDateStrategy,
    SingleTotalStrategy,
    SourceDocument,
    StatementPatternMatcher,
    StructuredColumnStrategy,
    is_transaction_list,
)

TODAY = date(2024, 6, 1)


def _context(**overrides):
    params = dict(
        classifier=RuleBasedClassifier(),
        categories=list(settings.DEFAULT_CATEGORIES),
        today=TODAY,
    )
    params.update(overrides)
    return ExtractionContext(**params)


class TestLabeledDateStrategy:

    def test_date_description_amount_lines(self):
        text = "03/14/2024 Tim Hortons 5.75\n03/15/2024 Esso Station 40.00 CR"
        expenses = LabeledDateStrategy().extract(SourceDocument(text=text), _context())

        assert [(e.date, e.description, e.amount) for e in expenses] == [
            ("2024-03-14", "Tim Hortons", Decimal("5.75")),
            ("2024-03-15", "Esso Station", Decimal("40.00")),
        ]
        assert expenses[0].category == "Food"
        assert expenses[0].needs_review is False
        assert expenses[0].paid_by == "Credit Card"

    def test_currency_and_grouping(self):
        text = "2024-02-01 Air Canada booking $1,234.56"
        expenses = LabeledDateStrategy().extract(SourceDocument(text=text), _context())
        assert len(expenses) == 1
        assert expenses[0].amount == Decimal("1234.56")
        assert expenses[0].category == "Gas"

    def test_line_starting_with_two_dates_is_left_for_dual_date(self):
        text = "03/14/2024 03/15/2024 ESSO 40.00"
        assert LabeledDateStrategy().extract(SourceDocument(text=text), _context()) == []

    def test_duplicates_within_a_run_are_dropped(self):
        text = "03/14/2024 Tim Hortons 5.75\n03/14/2024 Tim Hortons 5.75"
        expenses = LabeledDateStrategy().extract(SourceDocument(text=text), _context())
        assert len(expenses) == 1

    def test_description_needs_letters(self):
        text = "03/14/2024 12345 5.75"
        assert LabeledDateStrategy().extract(SourceDocument(text=text), _context()) == []


class TestVendorLayouts:

    def test_posted_keyword_with_yearless_date(self):
        text = "POSTED 03/14 TIM HORTONS #123 5.75"
        expenses = KeywordPrefixedStrategy().extract(SourceDocument(text=text), _context())

        assert len(expenses) == 1
        assert expenses[0].date == "2024-03-14"
        assert expenses[0].description == "TIM HORTONS #123"

    def test_transaction_date_keyword(self):
        text = "Transaction Date: Mar 14, 2024 STAPLES 12.30"
        expenses = KeywordPrefixedStrategy().extract(SourceDocument(text=text), _context())
        assert len(expenses) == 1
        assert expenses[0].date == "2024-03-14"
        assert expenses[0].category == "Office"

    def test_dual_date_keeps_transaction_date(self):
        text = "MAR 14 MAR 15 TIM HORTONS 5.75"
        expenses = DualDateStrategy().extract(SourceDocument(text=text), _context())

        assert len(expenses) == 1
        assert expenses[0].date == "2024-03-15"
        assert expenses[0].description == "TIM HORTONS"

    def test_dual_numeric_dates_with_year(self):
        text = "03/14/2024 03/15/2024 ESSO 40.00"
        expenses = DualDateStrategy().extract(SourceDocument(text=text), _context())
        assert expenses[0].date == "2024-03-15"


class TestAggressiveFallback:

    def test_symbol_amount_then_text(self):
        text = "$12.50 Office Depot supplies\n$30.00 Rogers wireless bill"
        expenses = AggressiveFallbackStrategy().extract(SourceDocument(text=text), _context())

        assert [(e.amount, e.description) for e in expenses] == [
            (Decimal("12.50"), "Office Depot supplies"),
            (Decimal("30.00"), "Rogers wireless bill"),
        ]
        assert all(e.date == "2024-06-01" for e in expenses)

    def test_parking_line_categorized_as_entertainment(self):
        expenses = AggressiveFallbackStrategy().extract(
            SourceDocument(text="$12.50 Parking downtown lot"), _context()
        )
        assert [(e.description, e.category) for e in expenses] == [
            ("Parking downtown lot", "Entertainment"),
        ]

    def test_description_capped_at_fifty(self):
        text = "$12.50 " + "Conference registration and workshop fees for the annual meeting"
        expenses = AggressiveFallbackStrategy().extract(SourceDocument(text=text), _context())
        assert expenses[0].description.endswith("...")
        assert len(expenses[0].description) <= 53


class TestSingleTotal:

    def test_labelled_item_date_and_total(self):
        text = "Corner Cafe\nItem: Coffee and muffin\nDate: 03/14/2024\nSubtotal: $4.00\nTotal: $4.52"
        expenses = SingleTotalStrategy().extract(SourceDocument(text=text), _context())

        assert len(expenses) == 1
        expense = expenses[0]
        assert expense.amount == Decimal("4.52")
        assert expense.date == "2024-03-14"
        assert expense.description == "Coffee and muffin"
        assert expense.category == "Food"
        assert expense.needs_review is False
        assert expense.paid_by == "Receipt"

    def test_total_only(self):
        expenses = SingleTotalStrategy().extract(SourceDocument(text="Total: $42.00"), _context())

        assert len(expenses) == 1
        assert expenses[0].amount == Decimal("42.00")
        assert expenses[0].date == "2024-06-01"
        assert expenses[0].description == "Unknown purchase"
        assert expenses[0].category == UNCATEGORIZED
        assert expenses[0].needs_review is True

    def test_first_informative_line_describes_purchase(self):
        text = "Invoice 42\nAcme Hardware\nTotal: $42.00"
        expenses = SingleTotalStrategy().extract(SourceDocument(text=text), _context())
        assert expenses[0].description == "Acme Hardware"
        assert expenses[0].category == UNCATEGORIZED

    def test_explicit_payment_beats_generic_total(self):
        text = "Price 10.00\nAmount Paid: $59.52"
        expenses = SingleTotalStrategy().extract(SourceDocument(text=text), _context())
        assert expenses[0].amount == Decimal("59.52")

    def test_no_total(self):
        assert SingleTotalStrategy().extract(SourceDocument(text="Hello there"), _context()) == []


class TestStructuredColumns:

    def test_header_roles(self):
        strategy = StructuredColumnStrategy()
        columns = strategy.map_headers(["Transaction Date", "Transaction Type", "Description", "Amount"])
        assert columns == {"date": 0, "amount": 3, "description": 2, "category": 1}

    def test_unrecognized_headers(self):
        assert StructuredColumnStrategy().map_headers(["col1", "col2", "col3"]) is None

    def test_category_column_is_mapped(self):
        table = split_csv("Date,Description,Amount,Category\n2024-01-05,Qwerty,10.00,Restaurants\n")
        expenses = StructuredColumnStrategy().extract(SourceDocument(text="", table=table), _context())
        assert expenses[0].category == "Food"
        assert expenses[0].needs_review is False

    def test_debit_and_credit_columns(self):
        table = split_csv("Date,Description,Debit,Credit\n2024-01-05,Esso,45.00,\n2024-01-06,Staples refund,,20.00\n")
        expenses = StructuredColumnStrategy().extract(SourceDocument(text="", table=table), _context())
        assert [e.amount for e in expenses] == [Decimal("45.00"), Decimal("20.00")]

    def test_inferred_columns_include_headerless_first_row(self):
        table = split_csv("03/14/2024,Tim Hortons,5.75\n03/15/2024,Esso,40.00\n")
        expenses = StructuredColumnStrategy().extract(SourceDocument(text="", table=table), _context())
        assert [(e.date, e.description) for e in expenses] == [
            ("2024-03-14", "Tim Hortons"),
            ("2024-03-15", "Esso"),
        ]

    def test_zero_amount_rows_dropped(self):
        table = split_csv("Date,Description,Amount\n2024-01-05,Esso,0.00\n2024-01-06,Esso,12.00\n")
        expenses = StructuredColumnStrategy().extract(SourceDocument(text="", table=table), _context())
        assert len(expenses) == 1


class TestCascade:

    def test_transaction_list_detection(self):
        assert is_transaction_list("Credit Card Statement")
        assert is_transaction_list("03/14/2024 something")
        assert not is_transaction_list("Total: $42.00")

    def test_non_statement_goes_to_single_total(self):
        result = StatementPatternMatcher().match_text("Total: $42.00", _context())
        assert result.strategy == "single_total"
        assert len(result.expenses) == 1

    def test_first_productive_strategy_wins(self):
        text = "Credit Card Statement\nMAR 14 MAR 15 TIM HORTONS 5.75\nMAR 16 MAR 17 ESSO 40.00"
        result = StatementPatternMatcher().match_text(text, _context())
        assert result.strategy == "dual_date"
        assert [e.date for e in result.expenses] == ["2024-03-15", "2024-03-17"]

    def test_statement_falls_through_to_single_total(self):
        result = StatementPatternMatcher().match_text("Statement summary\nTotal: $42.00", _context())
        assert result.strategy == "single_total"

    def test_empty_text(self):
        result = StatementPatternMatcher().match_text("", _context())
        assert result.expenses == []
        assert result.strategy is None

    def test_csv_falls_back_to_text_cascade_sorted(self):
        table = split_csv("Notes\n03/15/2024 Esso 40.00\n03/14/2024 Tim Hortons 5.75\n")
        result = StatementPatternMatcher().match_csv(table, _context(paid_by="CSV Import"))

        assert result.sort_by_date is True
        assert {e.paid_by for e in result.expenses} == {"CSV Import"}
        assert len(result.expenses) == 2
