# Overview: SQLAlchemy declarative base and engine/session factory for the cross-tab storage.

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def make_engine(url: str) -> Engine:
    """
    Create the engine backing the shared storage boundary.

    In-memory SQLite gets a StaticPool so every tab in the process sees the
    same database, the way every tab of an origin sees the same localStorage.
    """
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url)


def make_session_factory(engine: Engine) -> sessionmaker:
    # Import models so metadata knows every table before create_all
    from . import models  # noqa: F401

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
