"""Wire contract of the rate service.

Calls are JSON-RPC 2.0 envelopes posted to `/rpc`. Currency codes travel as
members of `domain.currency.Currency`; anything else is rejected as invalid
params before it reaches the resolver.
"""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from domain.currency import Currency

RPC_PATH = "/rpc"
SERVICE_NAME = "Currency"
GET_RATE_METHOD = "Currency.GetRate"
DESCRIBE_METHOD = "Currency.Describe"


class ErrorCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    UNKNOWN_CURRENCY = -32001
    RATES_UNAVAILABLE = -32002
    SERVICE_STARTING = -32003


class RateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base: Currency
    destination: Currency


class RateResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rate: float = Field(gt=0)


__all__ = [
    "DESCRIBE_METHOD",
    "ErrorCode",
    "GET_RATE_METHOD",
    "RPC_PATH",
    "RateRequest",
    "RateResponse",
    "SERVICE_NAME",
]
