from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from datetime import date
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from domain.currency import BASE_CURRENCY
from domain.rates import (
    FeedSnapshot,
    RateFeedError,
    RatesNotReadyError,
    RatesUnavailableError,
    RawRate,
    UnknownCurrencyError,
    parse_rate,
)

from .ecb_client import RateFeedSource

logger = logging.getLogger(__name__)


class RateTable:
    """Immutable mapping of currency code to units per one base-currency unit."""

    def __init__(
        self,
        rates: Mapping[str, float],
        *,
        base: str = BASE_CURRENCY,
        published_on: date | None = None,
    ) -> None:
        self._base = str(base)
        self._published_on = published_on
        self._rates: Mapping[str, float] = MappingProxyType(dict(rates))

    @classmethod
    def build(
        cls,
        entries: Iterable[RawRate | tuple[str, Any]],
        *,
        base: str = BASE_CURRENCY,
        published_on: date | None = None,
    ) -> RateTable:
        rates: dict[str, float] = {}
        for entry in entries:
            if isinstance(entry, RawRate):
                code, raw = entry.currency, entry.rate
            else:
                code, raw = entry
            code = str(code).strip().upper()
            rates[code] = parse_rate(code, raw)

        # The base currency is pinned whether or not the feed reports it.
        rates[str(base)] = 1.0
        return cls(rates, base=base, published_on=published_on)

    @classmethod
    def from_snapshot(cls, snapshot: FeedSnapshot, *, base: str = BASE_CURRENCY) -> RateTable:
        return cls.build(snapshot.rates, base=base, published_on=snapshot.published_on)

    @property
    def base(self) -> str:
        return self._base

    @property
    def published_on(self) -> date | None:
        return self._published_on

    @property
    def currencies(self) -> frozenset[str]:
        return frozenset(self._rates)

    def lookup(self, code: str) -> float:
        try:
            return self._rates[str(code)]
        except KeyError as exc:
            raise UnknownCurrencyError(str(code)) from exc

    def as_dict(self) -> dict[str, float]:
        return dict(self._rates)

    def __contains__(self, code: object) -> bool:
        return str(code) in self._rates

    def __len__(self) -> int:
        return len(self._rates)

    def __repr__(self) -> str:
        return f"RateTable(base={self._base!r}, currencies={len(self._rates)}, published_on={self._published_on})"


class TableState(StrEnum):
    STARTING = "starting"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class RateTableHolder:
    """Owns the published rate table.

    Readers take the current reference without locking. Writers replace the
    whole table, so a reader sees either the previous or the new table.
    """

    def __init__(self, table: RateTable | None = None) -> None:
        self._table = table
        self._state = TableState.READY if table is not None else TableState.STARTING
        self._last_error: str | None = None
        self._write_lock = threading.Lock()

    @property
    def state(self) -> TableState:
        return self._state

    def current(self) -> RateTable:
        table = self._table
        if table is not None:
            return table
        if self._state is TableState.UNAVAILABLE:
            raise RatesUnavailableError(f"Exchange rates are unavailable: {self._last_error}")
        raise RatesNotReadyError("Exchange rates are still loading")

    def publish(self, table: RateTable) -> None:
        with self._write_lock:
            self._table = table
            self._state = TableState.READY
            self._last_error = None

    def refresh(self, source: RateFeedSource) -> RateTable:
        try:
            table = RateTable.from_snapshot(source.fetch())
        except RateFeedError as exc:
            with self._write_lock:
                self._last_error = str(exc)
                if self._table is None:
                    self._state = TableState.UNAVAILABLE
            if self._table is None:
                logger.error("Unable to load exchange rates: %s", exc)
            else:
                logger.warning("Keeping previous exchange rates after failed refresh: %s", exc)
            raise

        self.publish(table)
        logger.info("Published %d exchange rates (published on %s)", len(table), table.published_on)
        return table

    def status(self) -> dict[str, Any]:
        table = self._table
        return {
            "state": self._state.value,
            "base": table.base if table is not None else None,
            "currencies": len(table) if table is not None else 0,
            "published_on": table.published_on.isoformat() if table is not None and table.published_on else None,
            "last_error": self._last_error,
        }


__all__ = ["RateTable", "RateTableHolder", "TableState"]
