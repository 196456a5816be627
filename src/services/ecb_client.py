from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import date, datetime, timezone
from typing import Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from domain.rates import (
    FeedBadStatusError,
    FeedParseError,
    FeedSnapshot,
    FeedStaleError,
    FeedUnavailableError,
    RawRate,
    parse_rate,
)

logger = logging.getLogger(__name__)

# Feed docs: https://www.ecb.europa.eu/stats/policy_and_exchange_rates/euro_reference_exchange_rates/html/index.en.html
DEFAULT_FEED_URL = "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml"


class RateFeedSource(Protocol):
    def fetch(self) -> FeedSnapshot: ...


class EcbRateFeedClient(RateFeedSource):
    """Client for the ECB daily euro reference rates document."""

    def __init__(
        self,
        *,
        url: str = DEFAULT_FEED_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        retry_attempts: int = 0,
        max_age_days: int | None = None,
    ) -> None:
        if not url:
            msg = "url must be provided"
            raise ValueError(msg)
        if max_age_days is not None and max_age_days < 0:
            msg = "max_age_days must be >= 0"
            raise ValueError(msg)

        self.url = url
        self.timeout = timeout
        self.max_age_days = max_age_days
        self._session = session or requests.Session()

        if retry_attempts > 0:
            retries = Retry(
                total=retry_attempts,
                backoff_factor=1,
                status_forcelist=[429, 502, 503, 504],
                allowed_methods=frozenset({"GET"}),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retries)
            self._session.mount("https://", adapter)
            self._session.mount("http://", adapter)

    def fetch(self, *, today: date | None = None) -> FeedSnapshot:
        try:
            response = self._session.request("GET", self.url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FeedUnavailableError(f"Rate feed {self.url} is unreachable") from exc

        if not 200 <= response.status_code < 300:
            raise FeedBadStatusError(
                f"Invalid status code {response.status_code} from rate feed",
                status_code=response.status_code,
                payload=response.text,
            )

        snapshot = parse_feed(response.content)
        self._check_age(snapshot, today=today or datetime.now(timezone.utc).date())
        logger.info("Fetched %d rates published on %s", len(snapshot.rates), snapshot.published_on)
        return snapshot

    def _check_age(self, snapshot: FeedSnapshot, *, today: date) -> None:
        if self.max_age_days is None:
            return
        if snapshot.published_on is None:
            raise FeedStaleError("Rate feed carries no publication date")
        age = (today - snapshot.published_on).days
        if age > self.max_age_days:
            raise FeedStaleError(
                f"Rate feed published on {snapshot.published_on.isoformat()} is {age} days old",
                payload=snapshot.published_on.isoformat(),
            )


def parse_feed(document: bytes | str) -> FeedSnapshot:
    """Parse an ECB `eurofxref` document into raw rates.

    The rates live in `Cube currency=... rate=...` elements nested under a
    `Cube time=...` day element. Namespaces are ignored. Parsing stops at the
    first entry whose rate is not a positive number.
    """
    try:
        root = ET.fromstring(document)
    except (ET.ParseError, ValueError) as exc:
        raise FeedParseError("Rate feed is not valid XML", payload=document) from exc

    published_on: date | None = None
    rates: list[RawRate] = []
    for element in root.iter():
        if _local_name(element.tag) != "Cube":
            continue

        day = element.get("time")
        if day is not None and published_on is None:
            try:
                published_on = date.fromisoformat(day)
            except ValueError as exc:
                raise FeedParseError(f"Invalid feed date {day!r}", payload=day) from exc

        currency = element.get("currency")
        raw_rate = element.get("rate")
        if currency is None and raw_rate is None:
            continue
        if not currency or raw_rate is None:
            raise FeedParseError("Rate feed entry is missing currency or rate", payload=dict(element.attrib))

        code = currency.strip().upper()
        rates.append(RawRate(currency=code, rate=parse_rate(code, raw_rate)))

    if not rates:
        raise FeedParseError("Rate feed contains no rates")

    return FeedSnapshot(published_on=published_on, rates=tuple(rates))


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


__all__ = ["DEFAULT_FEED_URL", "EcbRateFeedClient", "RateFeedSource", "parse_feed"]
