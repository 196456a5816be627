from __future__ import annotations

import functools
import json
import logging
from collections.abc import Callable
from typing import Any

from jsonrpc import Dispatcher, JSONRPCResponseManager
from jsonrpc.exceptions import JSONRPCDispatchException
from pydantic import ValidationError

from domain.rates import RatesNotReadyError, RatesUnavailableError, UnknownCurrencyError

from .rate_protocol import (
    DESCRIBE_METHOD,
    GET_RATE_METHOD,
    SERVICE_NAME,
    ErrorCode,
    RateRequest,
    RateResponse,
)
from .rate_resolver import RateResolver

logger = logging.getLogger(__name__)


def _rpc_fault(code: ErrorCode, message: str, data: Any | None = None) -> JSONRPCDispatchException:
    return JSONRPCDispatchException(code=int(code), message=message, data=data)


def _internal_errors(handler: Callable[..., Any]) -> Callable[..., Any]:
    # Unexpected failures stay in the log; callers only see the code.
    @functools.wraps(handler)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return handler(*args, **kwargs)
        except JSONRPCDispatchException:
            raise
        except Exception as exc:
            logger.exception("Unhandled error in %s", handler.__name__)
            raise _rpc_fault(ErrorCode.INTERNAL_ERROR, "Internal error") from exc

    return wrapper


class RateService:
    """JSON-RPC front of the rate resolver.

    Holds no per-call state; every call reads the current table through the
    resolver, so calls may run concurrently on any number of threads.
    """

    def __init__(self, resolver: RateResolver) -> None:
        self.resolver = resolver
        self.dispatcher = Dispatcher()
        self.dispatcher.add_method(_internal_errors(self._call_get_rate), name=GET_RATE_METHOD)
        self.dispatcher.add_method(_internal_errors(self._call_describe), name=DESCRIBE_METHOD)

    def get_rate(self, request: RateRequest) -> RateResponse:
        logger.info("Handle request for GetRate base=%s destination=%s", request.base, request.destination)
        try:
            rate = self.resolver.resolve(request.base, request.destination)
        except UnknownCurrencyError as exc:
            raise _rpc_fault(
                ErrorCode.UNKNOWN_CURRENCY,
                str(exc),
                data={"currency": exc.currency, "side": exc.side},
            ) from exc
        except RatesNotReadyError as exc:
            raise _rpc_fault(ErrorCode.SERVICE_STARTING, str(exc)) from exc
        except RatesUnavailableError as exc:
            raise _rpc_fault(ErrorCode.RATES_UNAVAILABLE, str(exc)) from exc
        return RateResponse(rate=rate)

    def describe(self) -> dict[str, Any]:
        return {
            "service": SERVICE_NAME,
            "methods": [
                {
                    "name": GET_RATE_METHOD,
                    "params": RateRequest.model_json_schema(),
                    "result": RateResponse.model_json_schema(),
                },
                {"name": DESCRIBE_METHOD, "params": None, "result": {"type": "object"}},
            ],
        }

    def handle(self, body: str) -> dict[str, Any] | list[dict[str, Any]] | None:
        """Answer a raw JSON-RPC body, single call or batch.

        Returns None when nothing has to be sent back (notifications only).
        """
        response = JSONRPCResponseManager.handle(body, self.dispatcher)
        if response is None:
            return None
        return response.data

    def dispatch(self, payload: Any) -> dict[str, Any] | list[dict[str, Any]] | None:
        return self.handle(json.dumps(payload))

    def _call_get_rate(self, *args: Any, **params: Any) -> dict[str, Any]:
        if args:
            raise _rpc_fault(ErrorCode.INVALID_PARAMS, "Params must be an object")
        try:
            rate_request = RateRequest.model_validate(params)
        except ValidationError as exc:
            raise _rpc_fault(
                ErrorCode.INVALID_PARAMS,
                "Invalid params for GetRate",
                data=exc.errors(include_url=False, include_context=False),
            ) from exc
        return self.get_rate(rate_request).model_dump()

    def _call_describe(self, *args: Any, **params: Any) -> dict[str, Any]:
        return self.describe()


__all__ = ["RateService"]
