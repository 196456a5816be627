from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncGenerator, Literal

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_rate_service, get_rate_table_holder
from domain.rates import RateFeedError
from services.ecb_client import RateFeedSource
from services.rate_protocol import RPC_PATH
from services.rate_resolver import RateResolver
from services.rate_service import RateService
from services.rate_table import RateTableHolder, TableState

logger = logging.getLogger(__name__)


def create_rate_app(
    holder: RateTableHolder,
    source: RateFeedSource | None = None,
    *,
    startup_policy: Literal["fail", "degraded"] = "fail",
) -> FastAPI:
    """Build the rate service app.

    When `source` is given the table is loaded once, before the first call is
    served. With the `fail` policy a load error aborts startup; with
    `degraded` the service starts and reports every call as unavailable.
    """

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
        if source is not None:
            try:
                await run_in_threadpool(holder.refresh, source)
            except RateFeedError:
                if startup_policy == "fail":
                    logger.error("Unable to generate rates, refusing to start")
                    raise
                logger.warning("Starting without exchange rates")
        yield

    app = FastAPI(title="Currency rate service", lifespan=lifespan)
    app.state.holder = holder
    app.state.rate_service = RateService(RateResolver(holder))

    @app.post(RPC_PATH)
    async def rpc(request: Request, service: Annotated[RateService, Depends(get_rate_service)]) -> Response:
        body = await request.body()
        result = await run_in_threadpool(service.handle, body.decode("utf-8", errors="replace"))
        if result is None:
            return Response(status_code=204)
        return JSONResponse(result)

    @app.get("/health")
    def health(table_holder: Annotated[RateTableHolder, Depends(get_rate_table_holder)]) -> JSONResponse:
        status_code = 200 if table_holder.state is TableState.READY else 503
        return JSONResponse(table_holder.status(), status_code=status_code)

    return app


__all__ = ["create_rate_app"]
