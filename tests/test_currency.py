"""Tests for currency conversion and display formatting."""

from decimal import Decimal

from portal.currency import (
    Currency,
    convert,
    format_currency_exact,
    format_currency_range,
    format_currency_value,
)
from portal import content


class TestConvert:
    def test_php_is_identity(self):
        assert convert(1500, Currency.PHP) == Decimal("1500")

    def test_fixed_rates(self):
        """Test that 58 PHP buy one dollar and 63 PHP one euro."""
        assert convert(58, Currency.USD) == Decimal("1")
        assert convert(630, Currency.EUR) == Decimal("10")


class TestFormatCurrencyValue:
    def test_millions(self):
        assert format_currency_value(2_500_000, Currency.PHP) == "₱2.5M"

    def test_thousands_after_conversion(self):
        """Test that the suffix is chosen after converting."""
        assert format_currency_value(120_000, Currency.USD) == "$2.1k"
        assert format_currency_value(25_000_000, Currency.EUR) == "€396.8k"

    def test_small_values_have_no_decimals(self):
        assert format_currency_value(500, Currency.PHP) == "₱500"

    def test_rounds_half_up(self):
        assert format_currency_value(1050, Currency.PHP) == "₱1.1k"

    def test_thousands_separator(self):
        assert format_currency_value(1_234_567_890, Currency.PHP) == "₱1,234.6M"


class TestFormatCurrencyRange:
    def test_shared_suffix(self):
        """Test that both ends use the magnitude of the minimum."""
        assert format_currency_range(2_500_000, 5_000_000, Currency.PHP) == "₱2.5–5.0M"

    def test_converted_range(self):
        assert format_currency_range(2_500_000, 5_000_000, Currency.USD) == "$43.1–86.2k"


class TestFormatCurrencyExact:
    def test_two_decimals(self):
        assert format_currency_exact(3000) == "₱3,000.00"
        assert format_currency_exact(Decimal("62.5")) == "₱62.50"


class TestPitchContent:
    """Tests for the currency-dependent investor content."""

    def test_funding_tiers_in_php(self):
        tiers = content.funding_tiers(Currency.PHP)
        assert [t.title for t in tiers] == ["Pilot Investor", "SIRV Villa Owner", "Equity Partner"]
        assert [t.amount for t in tiers] == ["₱2.5–5.0M", "₱12.5M+", "₱25.0M+"]

    def test_funding_tiers_follow_currency(self):
        tiers = content.funding_tiers(Currency.USD)
        assert tiers[1].amount == "$215.5k+"

    def test_revenue_rows(self):
        rows = content.revenue_rows(Currency.PHP)
        assert [r.year for r in rows] == [2026, 2027, 2028, 2029, 2030]
        assert rows[0].total == "₱27.5M"

    def test_key_metrics(self):
        metrics = content.key_metrics(Currency.PHP)
        assert metrics[1].value == "₱12.0k"
