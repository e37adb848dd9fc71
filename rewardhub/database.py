"""SQLAlchemy engine and session setup for the SQL store backend."""
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_db_engine(database_url: str, pool_size: int = 20, max_overflow: int = 40) -> Engine:
    """
    Create an engine for ``database_url``.

    SQLite gets a thread-shareable connection and no pool sizing; any other
    backend gets a sized connection pool with pre-ping.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    # models must be imported so their tables register on Base.metadata
    from rewardhub import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ensured on {engine.url.render_as_string(hide_password=True)}")
