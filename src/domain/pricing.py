from __future__ import annotations

from typing import Protocol

from domain.currency import Currency


class RateProvider(Protocol):
    """Lookup interface for base→destination conversion rates."""

    def get_rate(self, base: Currency | str, destination: Currency | str) -> float: ...
