from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from db.db import init_db
from services.rate_resolver import RateResolver
from services.rate_table import RateTable, RateTableHolder
from tests.constants import SAMPLE_RATES
from tests.helpers.stub_rates import InProcessRateProvider


@pytest.fixture(scope="function")
def rate_table() -> RateTable:
    return RateTable.build(SAMPLE_RATES.items())


@pytest.fixture(scope="function")
def holder(rate_table: RateTable) -> RateTableHolder:
    return RateTableHolder(rate_table)


@pytest.fixture(scope="function")
def resolver(holder: RateTableHolder) -> RateResolver:
    return RateResolver(holder)


@pytest.fixture(scope="function")
def rate_provider(resolver: RateResolver) -> InProcessRateProvider:
    return InProcessRateProvider(resolver)


@pytest.fixture(scope="function")
def session_factory() -> sessionmaker[Session]:
    return init_db("sqlite://")


@pytest.fixture(scope="function")
def test_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session
