from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from db.repositories import ProductRepository
from services.price_converter import PriceConverter
from services.rate_service import RateService
from services.rate_table import RateTableHolder


def get_session(request: Request) -> Generator[Session, None, None]:
    with request.app.state.sessionmaker() as session:
        yield session


def get_product_repository(session: Annotated[Session, Depends(get_session)]) -> ProductRepository:
    return ProductRepository(session)


def get_price_converter(request: Request) -> PriceConverter:
    return request.app.state.converter


def get_rate_service(request: Request) -> RateService:
    return request.app.state.rate_service


def get_rate_table_holder(request: Request) -> RateTableHolder:
    return request.app.state.holder
