from __future__ import annotations

from enum import StrEnum


class UnsupportedCurrencyError(ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Unsupported currency code: {value!r}")
        self.value = value


class Currency(StrEnum):
    """Currencies published in the ECB reference rate feed.

    The member value is the wire representation used by the rate service.
    """

    EUR = "EUR"
    USD = "USD"
    JPY = "JPY"
    BGN = "BGN"
    CZK = "CZK"
    DKK = "DKK"
    GBP = "GBP"
    HUF = "HUF"
    PLN = "PLN"
    RON = "RON"
    SEK = "SEK"
    CHF = "CHF"
    ISK = "ISK"
    NOK = "NOK"
    HRK = "HRK"
    RUB = "RUB"
    TRY = "TRY"
    AUD = "AUD"
    BRL = "BRL"
    CAD = "CAD"
    CNY = "CNY"
    HKD = "HKD"
    IDR = "IDR"
    ILS = "ILS"
    INR = "INR"
    KRW = "KRW"
    MXN = "MXN"
    MYR = "MYR"
    NZD = "NZD"
    PHP = "PHP"
    SGD = "SGD"
    THB = "THB"
    ZAR = "ZAR"

    @classmethod
    def parse(cls, value: Currency | str) -> Currency:
        if isinstance(value, Currency):
            return value
        if not isinstance(value, str):
            raise UnsupportedCurrencyError(value)
        try:
            return cls(value.strip().upper())
        except ValueError as exc:
            raise UnsupportedCurrencyError(value) from exc


# Every rate in the table is expressed per one unit of this currency.
BASE_CURRENCY = Currency.EUR


__all__ = ["BASE_CURRENCY", "Currency", "UnsupportedCurrencyError"]
