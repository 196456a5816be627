from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

RateSide = Literal["base", "destination"]


class RateFeedError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class FeedUnavailableError(RateFeedError):
    """The feed endpoint could not be reached."""


class FeedBadStatusError(RateFeedError):
    """The feed answered with a non-success HTTP status."""


class FeedParseError(RateFeedError):
    """The feed document or one of its entries could not be parsed."""


class FeedStaleError(RateFeedError):
    """The feed document is older than the accepted age."""


class UnknownCurrencyError(LookupError):
    def __init__(self, currency: str, side: RateSide | None = None) -> None:
        if side is None:
            message = f"Rate not found for currency {currency}"
        else:
            message = f"Rate not found for {side} currency {currency}"
        super().__init__(message)
        self.currency = currency
        self.side = side


class RatesUnavailableError(RuntimeError):
    """No rate table could be loaded; every lookup fails."""


class RatesNotReadyError(RatesUnavailableError):
    """The rate table has not been loaded yet."""


@dataclass(frozen=True)
class RawRate:
    currency: str
    rate: float


@dataclass(frozen=True)
class FeedSnapshot:
    published_on: date | None
    rates: tuple[RawRate, ...]


def parse_rate(currency: str, raw: Any) -> float:
    """Parse a feed rate into a positive, finite float."""
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError) as exc:
        raise FeedParseError(f"Invalid rate {raw!r} for currency {currency}", payload=raw) from exc

    if not math.isfinite(value) or value <= 0:
        raise FeedParseError(f"Rate for currency {currency} must be a positive number, got {raw!r}", payload=raw)
    return value


__all__ = [
    "FeedBadStatusError",
    "FeedParseError",
    "FeedSnapshot",
    "FeedStaleError",
    "FeedUnavailableError",
    "RateFeedError",
    "RateSide",
    "RatesNotReadyError",
    "RatesUnavailableError",
    "RawRate",
    "UnknownCurrencyError",
    "parse_rate",
]
