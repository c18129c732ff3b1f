"""
Tests for currency quantization and amount conversion.
"""

from decimal import Decimal

import pytest
from balancelab.core.currency import (
    EUR,
    JPY,
    Currency,
    RoundingPolicy,
    get_currency,
    to_decimal,
)


class TestCurrencyQuantization:
    def test_eur_bankers_rounding(self):
        assert EUR.quantize(Decimal("1.225")) == Decimal("1.22")
        assert EUR.quantize(Decimal("1.235")) == Decimal("1.24")

    def test_jpy_has_no_decimals(self):
        assert JPY.quantize(Decimal("124.5")) == Decimal("124")
        assert JPY.quantum == Decimal("1")

    def test_half_up(self):
        eur = Currency("EUR", decimals=2, rounding=RoundingPolicy.HALF_UP)
        assert eur.quantize(Decimal("1.225")) == Decimal("1.23")

    def test_unknown_code_defaults_to_two_decimals(self):
        currency = get_currency("xyz")
        assert currency.code == "XYZ"
        assert currency.decimals == 2

    def test_registry_lookup_is_case_insensitive(self):
        assert get_currency("jpy") is JPY


class TestToDecimal:
    def test_accepts_exact_types(self):
        assert to_decimal("100000.00") == Decimal("100000.00")
        assert to_decimal(5) == Decimal(5)
        assert to_decimal(Decimal("-1.10")) == Decimal("-1.10")

    def test_keeps_scale_of_strings(self):
        assert str(to_decimal("1.10")) == "1.10"

    @pytest.mark.parametrize("value", [0.1, 1.0, True])
    def test_rejects_floats_and_bools(self, value):
        with pytest.raises(TypeError):
            to_decimal(value)

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
    def test_rejects_invalid_strings(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            to_decimal([1])
