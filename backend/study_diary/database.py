"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine used by the
SQL-backed study log store. Unlike a module-level engine, callers build
one explicitly and hand it to the store, so tests can use a private
in-memory SQLite database.
"""

from sqlmodel import SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from .config import DEFAULT_DB_URL

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def build_engine(url: str = DEFAULT_DB_URL):
    """Create an engine for `url`.

    SQLite connections are shared across request threads, and an
    in-memory SQLite database is pinned to a single connection so every
    session sees the same data.
    """
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    if url in _MEMORY_URLS:
        return create_engine(url, echo=False, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, echo=False, connect_args=connect_args)


def create_db_and_tables(engine):
    """Create database tables using SQLModel metadata.

    This function is intended for local development and lightweight
    scripts; it does not migrate existing tables.
    """
    SQLModel.metadata.create_all(engine)
