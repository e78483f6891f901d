import random
from decimal import Decimal

import pytest

from tenant_console.models import CurrencyFormatOptions
from tenant_console.services.format_service import (
    NON_FINITE_SENTINEL,
    CurrencyFormatter,
    FormatParseError,
    format_currency,
    parse_currency,
)


EURO = CurrencyFormatOptions(
    code="EUR", symbol="€", position="after", decimal_separator=",", thousand_separator=".",
)


class TestFormatCurrency:
    def test_defaults(self):
        assert format_currency(1234.5) == "$1,234.50"

    def test_swapped_separators_are_not_resubstituted(self):
        assert format_currency(1234.5, CurrencyFormatOptions(
            symbol="", decimal_separator=",", thousand_separator=".",
        )) == "1.234,50"

    def test_symbol_after(self):
        assert format_currency(1500.5, EURO) == "1.500,50€"

    def test_millions_have_every_group_separated(self):
        assert format_currency(1234567.891, EURO) == "1.234.567,89€"

    @pytest.mark.parametrize("amount,decimals,expected", [
        (2.5, 0, "$2"),
        (3.5, 0, "$4"),
        (0.125, 2, "$0.12"),
        (0.375, 2, "$0.38"),
        (2.675, 2, "$2.68"),
        (1.005, 2, "$1.00"),
        (Decimal("10.245"), 2, "$10.24"),
    ])
    def test_rounds_half_to_even(self, amount, decimals, expected):
        assert format_currency(amount, CurrencyFormatOptions(decimals=decimals)) == expected

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf"), Decimal("NaN"), Decimal("-Infinity")])
    def test_non_finite_renders_sentinel(self, amount):
        assert format_currency(amount, EURO) == NON_FINITE_SENTINEL

    @pytest.mark.parametrize("amount", [-0.0, -0.001, Decimal("-0.004")])
    def test_no_negative_zero(self, amount):
        assert format_currency(amount) == "$0.00"

    def test_negative_amount(self):
        assert format_currency(-1234.5) == "$-1,234.50"
        assert format_currency(-1234.5, EURO) == "-1.234,50€"

    def test_zero_decimals_has_no_decimal_separator(self):
        assert format_currency(1234.5, CurrencyFormatOptions(decimals=0, decimal_separator="!")) == "$1,234"

    def test_large_amounts_keep_every_digit(self):
        assert format_currency(Decimal("123456789012345678901234567890.125")) == (
            "$123,456,789,012,345,678,901,234,567,890.12"
        )
        assert format_currency(1e21, CurrencyFormatOptions(decimals=0)) == "$1,000,000,000,000,000,000,000"

    def test_multi_character_separators(self):
        opts = CurrencyFormatOptions(symbol="CHF ", decimal_separator=" dot ", thousand_separator="'")
        assert format_currency(9876543.21, opts) == "CHF 9'876'543 dot 21"

    def test_empty_thousand_separator(self):
        assert format_currency(1234567.5, CurrencyFormatOptions(thousand_separator="")) == "$1234567.50"

    def test_integers_and_decimals(self):
        assert format_currency(7) == "$7.00"
        assert format_currency(Decimal("0.1") + Decimal("0.2")) == "$0.30"

    def test_rejects_non_numbers(self):
        with pytest.raises(TypeError):
            format_currency("12.50")

    def test_partial_dict_options_are_merged_over_defaults(self):
        assert format_currency(1500.5, {"symbol": "€", "position": "after"}) == "1,500.50€"
        assert format_currency(1500.5, {"decimals": "bogus"}) == "$1,500.50"

    def test_formatter_is_callable(self):
        formatter = CurrencyFormatter(EURO)
        assert formatter.code == "EUR"
        assert formatter(12) == formatter.format(12) == "12,00€"


class TestParseCurrency:
    @pytest.mark.parametrize("opts", [
        CurrencyFormatOptions(),
        EURO,
        CurrencyFormatOptions(decimals=0),
        CurrencyFormatOptions(decimal_separator="0", thousand_separator="1", decimals=3),
        CurrencyFormatOptions(symbol="", decimal_separator=",,", thousand_separator=""),
    ])
    def test_recovers_amount_within_half_unit(self, opts):
        rng = random.Random(1234)
        half_unit = Decimal(1).scaleb(-opts.decimals) / 2
        for _ in range(200):
            amount = Decimal(rng.randint(-10**12, 10**12)).scaleb(-rng.randint(0, 5))
            parsed = parse_currency(format_currency(amount, opts), opts)
            assert abs(parsed - amount) <= half_unit

    def test_parses_euro_format(self):
        assert parse_currency("1.234.567,89€", EURO) == Decimal("1234567.89")
        assert parse_currency("-0,50€", EURO) == Decimal("-0.50")

    @pytest.mark.parametrize("text", [
        NON_FINITE_SENTINEL,
        "1,234.50",
        "$1234.50",
        "$1,234,50",
        "$1,23a.50",
        "$.50",
        "$",
    ])
    def test_rejects_malformed_text(self, text):
        with pytest.raises(FormatParseError):
            parse_currency(text)

    def test_formatter_parse(self):
        assert CurrencyFormatter(EURO).parse("12,00€") == Decimal("12.00")
