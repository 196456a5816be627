from __future__ import annotations

from domain.currency import Currency
from domain.rates import UnknownCurrencyError

from .rate_table import RateTableHolder


class RateResolver:
    def __init__(self, holder: RateTableHolder) -> None:
        self.holder = holder

    def resolve(self, base: Currency | str, destination: Currency | str) -> float:
        """Return destination units per one unit of `base`.

        Both codes are read from a single table snapshot. The base code is
        checked first, so it is the one reported when neither is known.
        """
        table = self.holder.current()
        base_code = str(base)
        destination_code = str(destination)

        if base_code not in table:
            raise UnknownCurrencyError(base_code, "base")
        if destination_code not in table:
            raise UnknownCurrencyError(destination_code, "destination")

        return table.lookup(destination_code) / table.lookup(base_code)


__all__ = ["RateResolver"]
