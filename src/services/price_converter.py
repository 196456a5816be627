from __future__ import annotations

import logging
from collections.abc import Sequence

from domain.catalog import Product
from domain.currency import Currency
from domain.pricing import RateProvider

logger = logging.getLogger(__name__)


class PriceConverter:
    def __init__(self, rates: RateProvider, *, base_currency: Currency | str) -> None:
        self.rates = rates
        self.base_currency = Currency.parse(base_currency)

    def convert(self, product: Product, destination: Currency | str | None) -> Product:
        """Return `product` priced in `destination`.

        An empty destination returns the product itself and makes no rate
        call. Otherwise the result is a copy; the given product is untouched.
        """
        if not destination:
            return product
        rate = self._rate(destination)
        return self._apply(product, rate)

    def convert_many(self, products: Sequence[Product], destination: Currency | str | None) -> list[Product]:
        if not destination:
            return list(products)
        # The rate does not depend on the product, one call covers the batch.
        rate = self._rate(destination)
        return [self._apply(product, rate) for product in products]

    def _rate(self, destination: Currency | str) -> float:
        try:
            return self.rates.get_rate(self.base_currency, destination)
        except Exception:
            logger.error("Unable to get rate base=%s destination=%s", self.base_currency, destination)
            raise

    @staticmethod
    def _apply(product: Product, rate: float) -> Product:
        return product.model_copy(update={"price": product.price * rate})


__all__ = ["PriceConverter"]
