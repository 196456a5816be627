from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests

from domain.currency import UnsupportedCurrencyError
from services.rate_client import (
    RateServiceClient,
    RateServiceError,
    RateServiceTimeoutError,
    RateServiceUnavailableError,
    RemoteCallError,
    RemoteUnknownCurrencyError,
)
from services.rate_protocol import ErrorCode
from tests.constants import BRL, EUR


def _mock_response(payload: Any, status_code: int = 200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = "payload"
    response.raise_for_status.return_value = None
    return response


def _session_returning(payload: Any) -> Mock:
    session = Mock()
    session.request.return_value = _mock_response(payload)
    return session


def test_get_rate_posts_json_rpc_envelope() -> None:
    session = _session_returning({"jsonrpc": "2.0", "id": 1, "result": {"rate": 5.5}})
    client = RateServiceClient(base_url="http://rates.local/", timeout=2.0, session=session)

    rate = client.get_rate(EUR, "brl")

    assert rate == 5.5
    session.request.assert_called_once_with(
        "POST",
        "http://rates.local/rpc",
        json={
            "jsonrpc": "2.0",
            "id": 1,
            "method": "Currency.GetRate",
            "params": {"base": "EUR", "destination": "BRL"},
        },
        timeout=2.0,
    )


def test_get_rate_uses_call_deadline() -> None:
    session = _session_returning({"jsonrpc": "2.0", "id": 1, "result": {"rate": 1.1}})
    client = RateServiceClient(base_url="http://rates.local", session=session)

    client.get_rate(EUR, BRL, timeout=0.25)

    assert session.request.call_args.kwargs["timeout"] == 0.25


def test_zero_call_deadline_is_not_replaced_by_default() -> None:
    session = _session_returning({"jsonrpc": "2.0", "id": 1, "result": {"rate": 1.1}})
    client = RateServiceClient(base_url="http://rates.local", timeout=3.0, session=session)

    client.get_rate(EUR, BRL, timeout=0)

    assert session.request.call_args.kwargs["timeout"] == 0


def test_unknown_code_is_rejected_before_the_call() -> None:
    session = Mock()
    client = RateServiceClient(base_url="http://rates.local", session=session)

    with pytest.raises(UnsupportedCurrencyError):
        client.get_rate(EUR, "ZZZ")

    session.request.assert_not_called()


def test_remote_unknown_currency_error() -> None:
    session = _session_returning(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {
                "code": int(ErrorCode.UNKNOWN_CURRENCY),
                "message": "Rate not found for destination currency BRL",
                "data": {"currency": "BRL", "side": "destination"},
            },
        }
    )
    client = RateServiceClient(base_url="http://rates.local", session=session)

    with pytest.raises(RemoteUnknownCurrencyError) as exc_info:
        client.get_rate(EUR, BRL)

    error = exc_info.value
    assert str(error) == "Rate not found for destination currency BRL"
    assert error.currency == "BRL"
    assert error.side == "destination"


def test_other_remote_errors() -> None:
    session = _session_returning(
        {"jsonrpc": "2.0", "id": 1, "error": {"code": int(ErrorCode.RATES_UNAVAILABLE), "message": "no rates"}}
    )
    client = RateServiceClient(base_url="http://rates.local", session=session)

    with pytest.raises(RemoteCallError) as exc_info:
        client.get_rate(EUR, BRL)

    assert not isinstance(exc_info.value, RemoteUnknownCurrencyError)
    assert exc_info.value.code == ErrorCode.RATES_UNAVAILABLE


def test_error_answered_with_null_id_keeps_remote_code() -> None:
    session = _session_returning(
        {"jsonrpc": "2.0", "id": None, "error": {"code": int(ErrorCode.INVALID_REQUEST), "message": "Invalid Request"}}
    )
    client = RateServiceClient(base_url="http://rates.local", session=session)

    with pytest.raises(RemoteCallError) as exc_info:
        client.get_rate(EUR, BRL)

    assert exc_info.value.code == ErrorCode.INVALID_REQUEST
    assert str(exc_info.value) == "Invalid Request"


def test_timeout_maps_to_timeout_error() -> None:
    session = Mock()
    session.request.side_effect = requests.ReadTimeout("slow")
    client = RateServiceClient(base_url="http://rates.local", session=session)

    with pytest.raises(RateServiceTimeoutError):
        client.get_rate(EUR, BRL)


def test_connection_error_maps_to_unavailable() -> None:
    session = Mock()
    session.request.side_effect = requests.ConnectionError("refused")
    client = RateServiceClient(base_url="http://rates.local", session=session)

    with pytest.raises(RateServiceUnavailableError):
        client.get_rate(EUR, BRL)


def test_http_error_maps_to_unavailable() -> None:
    response = _mock_response({}, status_code=502)
    response.raise_for_status.side_effect = requests.HTTPError(response=response)
    session = Mock()
    session.request.return_value = response
    client = RateServiceClient(base_url="http://rates.local", session=session)

    with pytest.raises(RateServiceUnavailableError) as exc_info:
        client.get_rate(EUR, BRL)

    assert exc_info.value.code == 502


@pytest.mark.parametrize(
    "payload",
    [
        ["not", "an", "object"],
        {"jsonrpc": "2.0", "id": 99, "result": {"rate": 1.0}},
        {"jsonrpc": "2.0", "id": 1},
        {"jsonrpc": "2.0", "id": 1, "result": {"rate": 0}},
        {"jsonrpc": "2.0", "id": 1, "result": {"value": 1.0}},
    ],
)
def test_invalid_responses(payload: Any) -> None:
    client = RateServiceClient(base_url="http://rates.local", session=_session_returning(payload))

    with pytest.raises(RateServiceError):
        client.get_rate(EUR, BRL)


def test_invalid_json_response() -> None:
    response = _mock_response(None)
    response.json.side_effect = ValueError("not json")
    session = Mock()
    session.request.return_value = response
    client = RateServiceClient(base_url="http://rates.local", session=session)

    with pytest.raises(RateServiceError):
        client.get_rate(EUR, BRL)


def test_request_ids_increase() -> None:
    session = Mock()
    session.request.side_effect = [
        _mock_response({"jsonrpc": "2.0", "id": 1, "result": {"rate": 1.0}}),
        _mock_response({"jsonrpc": "2.0", "id": 2, "result": {"rate": 2.0}}),
    ]
    client = RateServiceClient(base_url="http://rates.local", session=session)

    assert client.get_rate(EUR, BRL) == 1.0
    assert client.get_rate(EUR, BRL) == 2.0


def test_describe() -> None:
    description = {"service": "Currency", "methods": [{"name": "Currency.GetRate"}]}
    session = _session_returning({"jsonrpc": "2.0", "id": 1, "result": description})
    client = RateServiceClient(base_url="http://rates.local", session=session)

    assert client.describe() == description
    envelope = session.request.call_args.kwargs["json"]
    assert envelope["method"] == "Currency.Describe"
    assert "params" not in envelope


def test_client_requires_base_url() -> None:
    with pytest.raises(ValueError):
        RateServiceClient(base_url="")
