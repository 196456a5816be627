from __future__ import annotations

import logging
from time import perf_counter
from typing import Annotated, Awaitable, Callable, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from api.dependencies import get_price_converter, get_product_repository
from db.repositories import ProductRepository
from domain.catalog import Product, ProductIn, ProductNotFoundError
from domain.currency import Currency, UnsupportedCurrencyError
from services.price_converter import PriceConverter

logger = logging.getLogger(__name__)

T = TypeVar("T")

CurrencyParam = Annotated[str | None, Query(description="Currency to price the products in")]


def create_catalog_app(session_factory: sessionmaker[Session], converter: PriceConverter) -> FastAPI:
    app = FastAPI(title="Product catalog")
    app.state.sessionmaker = session_factory
    app.state.converter = converter

    @app.middleware("http")
    async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        start_time = perf_counter()
        response = await call_next(request)
        process_time = perf_counter() - start_time
        logger.info("Request time: %s %s: %.4fs", request.method, request.url, process_time)
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.get("/products")
    def list_products(
        repository: Annotated[ProductRepository, Depends(get_product_repository)],
        price_converter: Annotated[PriceConverter, Depends(get_price_converter)],
        currency: CurrencyParam = None,
    ) -> list[Product]:
        destination = _parse_currency(currency)
        products = repository.list()
        return _converted(lambda: price_converter.convert_many(products, destination))

    @app.get("/products/{product_id}")
    def get_product(
        product_id: int,
        repository: Annotated[ProductRepository, Depends(get_product_repository)],
        price_converter: Annotated[PriceConverter, Depends(get_price_converter)],
        currency: CurrencyParam = None,
    ) -> Product:
        product = _get_or_404(repository, product_id)
        destination = _parse_currency(currency)
        return _converted(lambda: price_converter.convert(product, destination))

    @app.post("/products", status_code=status.HTTP_201_CREATED)
    def create_product(
        body: ProductIn,
        repository: Annotated[ProductRepository, Depends(get_product_repository)],
    ) -> Product:
        product = repository.create(body)
        logger.info("Created product id=%d sku=%s", product.id, product.sku)
        return product

    @app.put("/products/{product_id}")
    def update_product(
        product_id: int,
        body: ProductIn,
        repository: Annotated[ProductRepository, Depends(get_product_repository)],
    ) -> Product:
        try:
            return repository.update(product_id, body)
        except ProductNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    @app.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_product(
        product_id: int,
        repository: Annotated[ProductRepository, Depends(get_product_repository)],
    ) -> Response:
        try:
            repository.delete(product_id)
        except ProductNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


def _parse_currency(raw: str | None) -> Currency | None:
    if not raw:
        return None
    try:
        return Currency.parse(raw)
    except UnsupportedCurrencyError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _get_or_404(repository: ProductRepository, product_id: int) -> Product:
    try:
        return repository.get(product_id)
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _converted(convert: Callable[[], T]) -> T:
    # A failed conversion is never answered with the unconverted price.
    try:
        return convert()
    except Exception as exc:
        logger.error("Unable to convert prices: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Unable to convert prices: {exc}",
        ) from exc


__all__ = ["create_catalog_app"]
