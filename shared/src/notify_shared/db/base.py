"""Declarative base plus engine and session factories."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Base class for the dispatch ORM models."""


def create_db_engine(dsn: str, **kwargs: object) -> Engine:
    """Create a SQLAlchemy engine from a DSN string.

    Workers pass ``pool_pre_ping=True`` so a recycled PostgreSQL connection
    does not fail the first dispatch after a database restart.
    """
    return create_engine(dsn, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a sessionmaker bound to *engine*.

    ``expire_on_commit=False`` keeps committed message rows readable after
    each per-write commit inside a dispatch.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)
