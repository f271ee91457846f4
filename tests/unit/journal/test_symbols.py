"""Tests for option detection and underlying extraction."""

import pytest

from trading_journal.core.enums import SymbolConvention
from trading_journal.journal.symbols import is_option, options_multiplier, underlying_symbol


class TestIsOption:
    @pytest.mark.parametrize("symbol", [
        "SPY251218C00679000",
        "AAPL240119P00150000",
        "QQQ240621C450",  # six digits, short strike
    ])
    def test_option_symbols(self, symbol):
        assert is_option(symbol) is True

    @pytest.mark.parametrize("symbol", [
        "AAPL",
        "BRK.B",
        "SPY251218",  # too short
        "ABCDEFGHIJKL",  # C but no digit run, not long enough
        "XYZ1234567890",  # no C or P
    ])
    def test_non_option_symbols(self, symbol):
        assert is_option(symbol) is False

    def test_long_symbol_without_digit_run(self):
        assert is_option("SOMEVERYLONGCALLNAME") is True

    def test_multiplier(self):
        assert options_multiplier("SPY251218C00679000") == 100.0
        assert options_multiplier("AAPL") == 1.0


class TestUnderlyingSymbol:
    def test_option_prefix(self):
        assert underlying_symbol("SPY251218C00679000") == "SPY"

    def test_stock_unchanged(self):
        assert underlying_symbol("AAPL") == "AAPL"

    def test_leading_digit_unchanged(self):
        assert underlying_symbol("1INCH") == "1INCH"

    def test_empty(self):
        assert underlying_symbol("") == ""

    def test_occ_keeps_digits_in_root(self):
        symbol = "BRK1251218C00100000"
        assert underlying_symbol(symbol) == "BRK"
        assert underlying_symbol(symbol, SymbolConvention.OCC) == "BRK1"

    def test_occ_without_marker_unchanged(self):
        assert underlying_symbol("AAPL", SymbolConvention.OCC) == "AAPL"
        assert underlying_symbol("SPY251218", SymbolConvention.OCC) == "SPY251218"
