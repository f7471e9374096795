"""
Currency formatting for the public site and the portal.

All stored amounts are in PHP (the base currency). Display converts
with fixed rates and shortens large values with a k/M suffix:

    format_currency_value(2_500_000, Currency.PHP)  -> "₱2.5M"
    format_currency_value(120_000, Currency.USD)    -> "$2.1k"
    format_currency_value(500, Currency.PHP)        -> "₱500"
    format_currency_range(2_500_000, 5_000_000, Currency.PHP) -> "₱2.5–5.0M"
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Union

Number = Union[int, float, Decimal]


class Currency(str, Enum):
    PHP = "PHP"
    USD = "USD"
    EUR = "EUR"


# How many PHP one unit of each currency costs.
PHP_PER_UNIT: dict[Currency, Decimal] = {
    Currency.PHP: Decimal("1"),
    Currency.USD: Decimal("58"),
    Currency.EUR: Decimal("63"),
}

EXCHANGE_RATES: dict[Currency, Decimal] = {
    currency: Decimal("1") / per_unit for currency, per_unit in PHP_PER_UNIT.items()
}

SYMBOLS: dict[Currency, str] = {
    Currency.PHP: "₱",
    Currency.USD: "$",
    Currency.EUR: "€",
}

_MILLION = Decimal("1000000")
_THOUSAND = Decimal("1000")


def convert(php_amount: Number, currency: Currency) -> Decimal:
    """Convert a PHP amount to the given currency."""
    return Decimal(str(php_amount)) / PHP_PER_UNIT[Currency(currency)]


def _magnitude(value: Decimal) -> tuple[Decimal, str, int]:
    """(divisor, suffix, decimals) for a converted value."""
    if value >= _MILLION:
        return _MILLION, "M", 1
    if value >= _THOUSAND:
        return _THOUSAND, "k", 1
    return Decimal("1"), "", 0


def _group(value: Decimal, decimals: int) -> str:
    quantum = Decimal(1).scaleb(-decimals)
    rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:,.{decimals}f}"


def format_currency_value(php_amount: Number, currency: Currency) -> str:
    """Format a PHP amount in the chosen currency, with a k/M suffix when large."""
    currency = Currency(currency)
    value = convert(php_amount, currency)
    divisor, suffix, decimals = _magnitude(value)
    return f"{SYMBOLS[currency]}{_group(value / divisor, decimals)}{suffix}"


def format_currency_range(php_min: Number, php_max: Number, currency: Currency) -> str:
    """
    Format a min–max range.

    The suffix and precision are chosen from the minimum, so both ends
    share one magnitude ("₱2.5–12.0M", never "₱2.5M–12.0M").
    """
    currency = Currency(currency)
    low = convert(php_min, currency)
    high = convert(php_max, currency)
    divisor, suffix, decimals = _magnitude(low)
    return (
        f"{SYMBOLS[currency]}{_group(low / divisor, decimals)}"
        f"–{_group(high / divisor, decimals)}{suffix}"
    )


def format_currency_exact(php_amount: Number, currency: Currency = Currency.PHP) -> str:
    """Full two-decimal amount, used for totals where k/M rounding would hide detail."""
    currency = Currency(currency)
    return f"{SYMBOLS[currency]}{_group(convert(php_amount, currency), 2)}"
