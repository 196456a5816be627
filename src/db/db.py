from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base


def create_db_engine(url: str = "sqlite://", echo: bool = False) -> Engine:
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection so every request thread sees the same in-memory database.
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, echo=echo)


def init_db(url: str = "sqlite://", echo: bool = False) -> sessionmaker[Session]:
    engine = create_db_engine(url, echo=echo)
    Base.metadata.create_all(engine)
    return sessionmaker(engine)
