from __future__ import annotations

import itertools
import logging
import threading
from typing import Any

import requests
from jsonrpc.jsonrpc2 import JSONRPC20Request

from domain.currency import Currency

from .rate_protocol import (
    DESCRIBE_METHOD,
    GET_RATE_METHOD,
    RPC_PATH,
    ErrorCode,
    RateRequest,
    RateResponse,
)

logger = logging.getLogger(__name__)


class RateServiceError(RuntimeError):
    def __init__(self, message: str, *, code: int | None = None, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class RateServiceUnavailableError(RateServiceError):
    """The rate service could not be reached or answered with an HTTP error."""


class RateServiceTimeoutError(RateServiceError):
    """The call did not complete before its deadline."""


class RemoteCallError(RateServiceError):
    """The rate service answered with a JSON-RPC error object."""


class RemoteUnknownCurrencyError(RemoteCallError):
    @property
    def currency(self) -> str | None:
        return self.data.get("currency") if isinstance(self.data, dict) else None

    @property
    def side(self) -> str | None:
        return self.data.get("side") if isinstance(self.data, dict) else None


class RateServiceClient:
    """Caller-side stub of the rate service."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url:
            msg = "base_url must be provided"
            raise ValueError(msg)
        if timeout <= 0:
            msg = "timeout must be > 0"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()

    def get_rate(self, base: Currency | str, destination: Currency | str, *, timeout: float | None = None) -> float:
        # Unknown textual codes never leave the process.
        request = RateRequest(base=Currency.parse(base), destination=Currency.parse(destination))
        result = self._call(GET_RATE_METHOD, request.model_dump(mode="json"), timeout=timeout)
        try:
            return RateResponse.model_validate(result).rate
        except ValueError as exc:
            raise RateServiceError("Rate service returned an invalid rate", data=result) from exc

    def describe(self, *, timeout: float | None = None) -> dict[str, Any]:
        result = self._call(DESCRIBE_METHOD, None, timeout=timeout)
        if not isinstance(result, dict):
            raise RateServiceError("Rate service returned an invalid description", data=result)
        return result

    def _call(self, method: str, params: dict[str, Any] | None, *, timeout: float | None) -> Any:
        request_id = self._next_id()
        envelope = JSONRPC20Request(method=method, params=params, _id=request_id).data
        deadline = timeout if timeout is not None else self.timeout

        url = f"{self.base_url}{RPC_PATH}"
        try:
            response = self._session.request("POST", url, json=envelope, timeout=deadline)
            response.raise_for_status()
        except requests.Timeout as exc:
            raise RateServiceTimeoutError(f"Rate service call {method} timed out") from exc
        except requests.HTTPError as exc:
            status_code = getattr(exc.response, "status_code", None)
            raise RateServiceUnavailableError(
                f"Rate service call {method} failed with status {status_code}", code=status_code
            ) from exc
        except requests.RequestException as exc:
            raise RateServiceUnavailableError(f"Rate service call {method} failed") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise RateServiceError("Rate service returned invalid JSON", data=response.text) from exc

        if not isinstance(payload, dict):
            raise RateServiceError("Rate service returned unexpected payload type", data=payload)
        error = payload.get("error")
        # Requests the server could not read are answered with a null id.
        if error is not None and payload.get("id") is None:
            raise self._remote_error(error)
        if payload.get("id") != request_id:
            raise RateServiceError("Rate service response id does not match the request", data=payload)
        if error is not None:
            raise self._remote_error(error)
        if "result" not in payload:
            raise RateServiceError("Rate service response carries no result", data=payload)
        return payload["result"]

    def _next_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    @staticmethod
    def _remote_error(error: Any) -> RemoteCallError:
        if not isinstance(error, dict):
            return RemoteCallError("Rate service returned a malformed error", data=error)

        code = error.get("code")
        message = str(error.get("message") or "Rate service call failed")
        data = error.get("data")
        logger.error("Rate service error code=%s message=%s", code, message)
        if code == ErrorCode.UNKNOWN_CURRENCY:
            return RemoteUnknownCurrencyError(message, code=code, data=data)
        return RemoteCallError(message, code=code, data=data)


__all__ = [
    "RateServiceClient",
    "RateServiceError",
    "RateServiceTimeoutError",
    "RateServiceUnavailableError",
    "RemoteCallError",
    "RemoteUnknownCurrencyError",
]
