"""
Unit tests for money formatting and boundary parsing.
"""

import pytest
from datetime import date
from decimal import Decimal

from retailpos.utils.formatters import money, parse_decimal, parse_int, parse_date


class TestMoney:

    def test_two_decimals(self):
        assert money(Decimal('39')) == '39.00'

    def test_rounds_half_up(self):
        assert money(Decimal('4.165')) == '4.17'
        assert money(Decimal('0.005')) == '0.01'

    def test_negative_total(self):
        assert money(Decimal('-1.5')) == '-1.50'

    def test_none_passes_through(self):
        assert money(None) is None


class TestParsing:

    def test_float_goes_through_str(self):
        assert parse_decimal(0.1, 'price') == Decimal('0.1')

    @pytest.mark.parametrize('value', [None, '', True, 'abc', 'NaN', 'Infinity'])
    def test_parse_decimal_rejects(self, value):
        with pytest.raises(ValueError):
            parse_decimal(value, 'price')

    def test_parse_int_accepts_whole_numbers(self):
        assert parse_int('3', 'quantity') == 3
        assert parse_int(3.0, 'quantity') == 3

    def test_parse_int_rejects_fractions(self):
        with pytest.raises(ValueError):
            parse_int('1.5', 'quantity')

    def test_parse_date_accepts_datetime_strings(self):
        assert parse_date('2026-10-19T08:30:00Z', 'start_date') == date(2026, 10, 19)

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_date('19/10/2026', 'start_date')
