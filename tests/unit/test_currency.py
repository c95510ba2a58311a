"""
Tests for currency validation and minor-unit precision.

- Currency codes are validated where settings are built.
- VAT and fee rounding takes its precision from the currency.
"""

import pytest
from decimal import Decimal

from cashbook_kernel.domain.currency import CurrencyInfo, CurrencyRegistry, validate_currency
from cashbook_kernel.domain.records import AccountSettings
from cashbook_kernel.exceptions import InvalidCurrencyError


class TestValidation:

    def test_valid_codes_accepted(self):
        for code in ["RSD", "EUR", "USD", "JPY", "BHD"]:
            assert CurrencyRegistry.is_valid(code)
            assert validate_currency(code) == code

    def test_normalized(self):
        assert validate_currency(" rsd ") == "RSD"

    @pytest.mark.parametrize("code", ["", "XXX", "DINAR", None])
    def test_invalid_rejected(self, code):
        with pytest.raises(InvalidCurrencyError):
            validate_currency(code)

    def test_error_code(self):
        with pytest.raises(InvalidCurrencyError) as exc_info:
            validate_currency("ABC")
        assert exc_info.value.code == "INVALID_CURRENCY"
        assert exc_info.value.currency == "ABC"


class TestPrecision:

    @pytest.mark.parametrize("code,places", [("RSD", 2), ("EUR", 2), ("JPY", 0), ("KWD", 3)])
    def test_decimal_places(self, code, places):
        assert CurrencyRegistry.get_decimal_places(code) == places

    def test_unknown_currency_has_no_precision(self):
        with pytest.raises(InvalidCurrencyError):
            CurrencyRegistry.get_decimal_places("ZZZ")

    def test_quantize_string(self):
        assert CurrencyInfo("JPY", 0, "Yen").quantize_string == "1"
        assert CurrencyInfo("KWD", 3, "Dinar").quantize_string == "0.001"

    def test_settings_follow_currency(self):
        settings = AccountSettings(currency="jpy")

        assert settings.currency == "JPY"
        assert settings.decimal_places == 0

    def test_settings_reject_unknown_currency(self):
        with pytest.raises(InvalidCurrencyError):
            AccountSettings(currency="XYZ", starting_balance=Decimal("0"))
