"""
Tests for amount extraction, rounding and sales tax annotation.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from decimal import Decimal
import pytest

from expense_engine.utils.money import (
    amounts_match,
    extract_amount,
    format_csv_money,
    format_plain,
    format_shortest,
    round_money,
)
from expense_engine.utils.tax import TAX_RATES, annotate, resolve_jurisdiction, tax_rate


class TestExtractAmount:
    """Amount tokens normalize to positive Decimals."""

    @pytest.mark.parametrize("token", ["$1,234.56", "1234.56", "-1234.56", "-$1,234.56", "(1,234.56)"])
    def test_common_forms(self, token):
        assert extract_amount(token) == Decimal('1234.56')

    def test_currency_prefix_and_suffix(self):
        assert extract_amount("CA$6.99") == Decimal('6.99')
        assert extract_amount("45.00 CR") == Decimal('45.00')
        assert extract_amount("€12.00") == Decimal('12.00')

    def test_zero_and_garbage_are_rejected(self):
        assert extract_amount("0.00") is None
        assert extract_amount("$0") is None
        assert extract_amount("n/a") is None
        assert extract_amount("") is None
        assert extract_amount(None) is None

    def test_malformed_number_is_rejected(self):
        assert extract_amount("1.234.56") is None


class TestMoneyFormatting:

    def test_round_half_up(self):
        assert round_money(Decimal('0.745')) == Decimal('0.75')
        assert round_money(Decimal('14.975')) == Decimal('14.98')

    def test_amounts_match_within_a_cent(self):
        assert amounts_match(Decimal('45.00'), Decimal('45.01'))
        assert not amounts_match(Decimal('45.00'), Decimal('45.02'))

    def test_formats(self):
        assert format_plain(Decimal('1234.5')) == '1234.50'
        assert format_shortest(Decimal('45.50')) == '45.5'
        assert format_shortest(Decimal('0.00')) == '0'
        assert format_shortest(Decimal('1000')) == '1000'
        assert format_csv_money(Decimal('1234.5')) == '$1234.50'


class TestTaxAnnotation:
    """tax = round(amount x rate, 2); net = amount - tax."""

    def test_ontario_hst(self):
        breakdown = annotate(Decimal('5.75'), 'Ontario')
        assert breakdown.tax == Decimal('0.75')
        assert breakdown.net == Decimal('5.00')

    def test_quebec_rounds_half_up(self):
        breakdown = annotate(Decimal('100.00'), 'Quebec')
        assert breakdown.tax == Decimal('14.98')
        assert breakdown.net == Decimal('85.02')

    @pytest.mark.parametrize("jurisdiction", list(TAX_RATES))
    def test_tax_plus_net_equals_amount(self, jurisdiction):
        for amount in (Decimal('0.01'), Decimal('5.75'), Decimal('19.99'), Decimal('1234.56')):
            breakdown = annotate(amount, jurisdiction)
            assert abs(breakdown.tax + breakdown.net - amount) <= Decimal('0.01')
            assert breakdown.tax == round_money(amount * TAX_RATES[jurisdiction])

    def test_unknown_jurisdiction_uses_ontario_rate(self):
        assert tax_rate('Atlantis') == Decimal('0.13')
        assert tax_rate(None) == Decimal('0.13')
        assert annotate(Decimal('100'), 'Atlantis').tax == Decimal('13.00')

    def test_codes_and_case_insensitive_names(self):
        assert resolve_jurisdiction('QC') == 'Quebec'
        assert resolve_jurisdiction('bc') == 'British Columbia'
        assert resolve_jurisdiction('nova scotia') == 'Nova Scotia'
        assert resolve_jurisdiction('Atlantis') is None
