from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest
from fastapi.testclient import TestClient

from api.rate_api import create_rate_app
from domain.rates import FeedBadStatusError, FeedSnapshot, FeedUnavailableError, RawRate
from services.rate_protocol import ErrorCode
from services.rate_table import RateTableHolder, TableState
from tests.helpers.stub_rates import StubFeedSource

SNAPSHOT = FeedSnapshot(
    published_on=date(2024, 1, 5),
    rates=(RawRate(currency="USD", rate=1.10), RawRate(currency="BRL", rate=5.50)),
)


def _get_rate(client: TestClient, base: str, destination: str, request_id: int = 1) -> dict:
    response = client.post(
        "/rpc",
        json={
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "Currency.GetRate",
            "params": {"base": base, "destination": destination},
        },
    )
    assert response.status_code == 200
    return response.json()


def test_startup_loads_rates_before_serving() -> None:
    holder = RateTableHolder()
    source = StubFeedSource(SNAPSHOT)
    app = create_rate_app(holder, source)

    with TestClient(app) as client:
        body = _get_rate(client, "USD", "BRL")
        health = client.get("/health")

    assert source.calls == 1
    assert body["result"]["rate"] == pytest.approx(5.0)
    assert health.status_code == 200
    assert health.json()["state"] == "ready"
    assert health.json()["published_on"] == "2024-01-05"


def test_startup_fails_with_fail_policy() -> None:
    app = create_rate_app(RateTableHolder(), StubFeedSource(FeedBadStatusError("bad status", status_code=500)))

    with pytest.raises(FeedBadStatusError):
        with TestClient(app):
            pass


def test_degraded_start_reports_unavailable() -> None:
    holder = RateTableHolder()
    app = create_rate_app(holder, StubFeedSource(FeedUnavailableError("unreachable")), startup_policy="degraded")

    with TestClient(app) as client:
        body = _get_rate(client, "EUR", "USD")
        health = client.get("/health")

    assert holder.state is TableState.UNAVAILABLE
    assert body["error"]["code"] == ErrorCode.RATES_UNAVAILABLE
    assert health.status_code == 503
    assert health.json()["state"] == "unavailable"


def test_service_without_table_reports_starting() -> None:
    app = create_rate_app(RateTableHolder())

    with TestClient(app) as client:
        body = _get_rate(client, "EUR", "USD")
        health = client.get("/health")

    assert body["error"]["code"] == ErrorCode.SERVICE_STARTING
    assert health.status_code == 503
    assert health.json()["state"] == "starting"


def test_unknown_currency_is_a_call_failure(holder: RateTableHolder) -> None:
    with TestClient(create_rate_app(holder)) as client:
        body = _get_rate(client, "EUR", "GBP")

    assert "result" not in body
    assert body["error"]["code"] == ErrorCode.UNKNOWN_CURRENCY
    assert body["error"]["data"] == {"currency": "GBP", "side": "destination"}


def test_parse_error(holder: RateTableHolder) -> None:
    with TestClient(create_rate_app(holder)) as client:
        response = client.post("/rpc", content=b"{not json", headers={"Content-Type": "application/json"})

    body = response.json()
    assert response.status_code == 200
    assert body["id"] is None
    assert body["error"]["code"] == ErrorCode.PARSE_ERROR


def test_notification_gets_no_content(holder: RateTableHolder) -> None:
    with TestClient(create_rate_app(holder)) as client:
        response = client.post(
            "/rpc",
            json={"jsonrpc": "2.0", "method": "Currency.GetRate", "params": {"base": "EUR", "destination": "USD"}},
        )

    assert response.status_code == 204


def test_describe_over_http(holder: RateTableHolder) -> None:
    with TestClient(create_rate_app(holder)) as client:
        response = client.post("/rpc", json={"jsonrpc": "2.0", "id": 7, "method": "Currency.Describe"})

    body = response.json()
    assert body["id"] == 7
    assert [method["name"] for method in body["result"]["methods"]] == ["Currency.GetRate", "Currency.Describe"]


def test_concurrent_calls_are_consistent(holder: RateTableHolder) -> None:
    pairs = [("EUR", "USD"), ("USD", "BRL"), ("BRL", "EUR")] * 20

    with TestClient(create_rate_app(holder)) as client:
        with ThreadPoolExecutor(max_workers=8) as pool:
            bodies = list(pool.map(lambda item: _get_rate(client, *item[1], request_id=item[0]), enumerate(pairs)))

    expected = {("EUR", "USD"): 1.10, ("USD", "BRL"): 5.0, ("BRL", "EUR"): 1 / 5.50}
    for request_id, (pair, body) in enumerate(zip(pairs, bodies)):
        assert body["id"] == request_id
        assert body["result"]["rate"] == pytest.approx(expected[pair])
