"""Currency -- ISO 4217 codes an account may keep its books in, with minor-unit precision."""

from dataclasses import dataclass
from typing import ClassVar

from cashbook_kernel.exceptions import InvalidCurrencyError

# Code -> name, grouped by number of minor-unit digits
_BY_PRECISION: dict[int, dict[str, str]] = {
    2: {
        "RSD": "Serbian Dinar",
        "BAM": "Bosnia and Herzegovina Convertible Mark",
        "MKD": "Macedonian Denar",
        "ALL": "Albanian Lek",
        "HUF": "Hungarian Forint",
        "RON": "Romanian Leu",
        "BGN": "Bulgarian Lev",
        "EUR": "Euro",
        "USD": "US Dollar",
        "GBP": "Pound Sterling",
        "CHF": "Swiss Franc",
        "CZK": "Czech Koruna",
        "PLN": "Polish Zloty",
        "SEK": "Swedish Krona",
        "NOK": "Norwegian Krone",
        "DKK": "Danish Krone",
        "TRY": "Turkish Lira",
        "CAD": "Canadian Dollar",
        "AUD": "Australian Dollar",
    },
    0: {
        "JPY": "Japanese Yen",
        "ISK": "Icelandic Krona",
        "KRW": "South Korean Won",
    },
    3: {
        "BHD": "Bahraini Dinar",
        "KWD": "Kuwaiti Dinar",
        "TND": "Tunisian Dinar",
    },
}


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    decimal_places: int
    name: str

    @property
    def quantize_string(self) -> str:
        """Exponent pattern for ``Decimal.quantize`` at this precision."""
        if not self.decimal_places:
            return "1"
        return "0.{}".format("0" * self.decimal_places)


class CurrencyRegistry:
    """Lookup of the supported currencies."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        code: CurrencyInfo(code, places, name)
        for places, names in _BY_PRECISION.items()
        for code, name in names.items()
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return code in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(code)

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """
        Minor-unit digits for ``code``.

        Raises:
            InvalidCurrencyError: if the code is not supported.
        """
        return cls._CURRENCIES[validate_currency(code)].decimal_places


def validate_currency(currency: str) -> str:
    """
    Uppercased, stripped currency code.

    Raises:
        InvalidCurrencyError: if the code is empty, not a string or not
            supported.
    """
    if not isinstance(currency, str) or not currency.strip():
        raise InvalidCurrencyError(str(currency))
    code = currency.strip().upper()
    if code not in CurrencyRegistry._CURRENCIES:
        raise InvalidCurrencyError(currency)
    return code
