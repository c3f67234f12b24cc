"""
Tests for date token parsing.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from datetime import date
import pytest

from expense_engine.utils.dates import has_year, parse_date, parse_date_with_year

TODAY = date(2024, 6, 1)


class TestParseDate:

    @pytest.mark.parametrize("iso", ["2024-03-14", "2023-01-01", "1999-12-31", "2024-02-29"])
    def test_iso_dates_are_returned_unchanged(self, iso):
        assert parse_date(iso, today=TODAY) == iso

    def test_month_first_numeric(self):
        assert parse_date("03/14/2024", today=TODAY) == "2024-03-14"
        assert parse_date("01/05/2024", today=TODAY) == "2024-01-05"

    def test_ambiguous_numeric_is_month_first(self):
        assert parse_date("03/04/2024", today=TODAY) == "2024-03-04"

    def test_day_first_when_month_is_impossible(self):
        assert parse_date("13/03/2024", today=TODAY) == "2024-03-13"

    def test_textual_month(self):
        assert parse_date("Jan 01, 2023", today=TODAY) == "2023-01-01"
        assert parse_date("March 14 2024", today=TODAY) == "2024-03-14"

    def test_unparseable_resolves_to_today(self):
        assert parse_date("garbage", today=TODAY) == "2024-06-01"
        assert parse_date("", today=TODAY) == "2024-06-01"
        assert parse_date(None, today=TODAY) == "2024-06-01"

    def test_invalid_iso_resolves_to_today(self):
        assert parse_date("2024-13-45", today=TODAY) == "2024-06-01"

    def test_yearless_token_without_inference_is_today(self):
        assert parse_date("03/14", today=TODAY) == "2024-06-01"


class TestYearInference:

    def test_has_year(self):
        assert has_year("03/14/2024")
        assert has_year("Mar 14, 2024")
        assert not has_year("03/14")
        assert not has_year("MAR 14")

    def test_numeric_token_takes_current_year(self):
        assert parse_date_with_year("03/14", today=TODAY) == "2024-03-14"

    def test_textual_token_takes_current_year(self):
        assert parse_date_with_year("MAR 15", today=TODAY) == "2024-03-15"

    def test_explicit_year(self):
        assert parse_date_with_year("12/30", year=2023, today=TODAY) == "2023-12-30"

    def test_token_with_year_is_untouched(self):
        assert parse_date_with_year("01/05/2023", today=TODAY) == "2023-01-05"
