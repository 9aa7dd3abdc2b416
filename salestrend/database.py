# salestrend/database.py
from sqlalchemy import create_engine, Engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str = None, pool_size: int = None, pool_timeout: int = None) -> Engine:
    """
    Create the engine that owns the connection pool.

    Server databases get a bounded QueuePool: once pool_size connections are
    checked out, callers wait (up to pool_timeout seconds) instead of failing.
    In-memory SQLite shares one connection so every session sees the same data.
    """
    url = make_url(database_url or settings.get_database_url())

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            return create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_size=pool_size or settings.DB_POOL_SIZE,
        max_overflow=0,
        pool_timeout=pool_timeout or settings.DB_POOL_TIMEOUT,
        pool_pre_ping=True,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create tables if they do not exist; safe to call repeatedly."""
    from . import models  # noqa: F401  (registers tables on Base.metadata)
    Base.metadata.create_all(bind=engine)
