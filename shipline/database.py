# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy engine, session factory, declarative base, and the FastAPI
dependency that provides a transactional DB session per request.

The engine is process-wide and shared by every request handler; the
store's own row atomicity and unique indexes are the only concurrency
control.  ``init_db`` / ``close_db`` bracket its lifetime.
"""

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from shipline.core.config import settings
from shipline.core.logger import logger


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        # pool_pre_ping keeps idle connections alive across MySQL's wait_timeout
        return {"pool_pre_ping": True}
    # FastAPI runs sync handlers in a thread pool, SQLite must allow that.
    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every checkout sees an empty DB
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db(request: Request):
    """
    FastAPI dependency.  Yields a session for the duration of the request,
    then closes it.  Use with Depends(get_db).

    The request deadline stamped by the timeout middleware travels in
    ``db.info["deadline"]``; writes refuse to commit once it has passed.
    """
    db = SessionLocal()
    db.info["deadline"] = getattr(request.state, "deadline", None)
    try:
        yield db
    finally:
        db.close()


def ping() -> bool:
    """Return True when a trivial round-trip to the store succeeds."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database ping failed: %s", exc)
        return False
    return True


def init_db() -> None:
    """Startup hook: verify connectivity and optionally create the tables."""
    if settings.create_tables_on_startup:
        # Import every ORM model so that Base.metadata knows about all tables.
        import shipline.models  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")

    if ping():
        logger.info("Database connected: %s", engine.url.render_as_string(hide_password=True))
    else:
        logger.error("Database is not reachable at startup")


def close_db() -> None:
    """Shutdown hook: release every pooled connection."""
    engine.dispose()
    logger.info("Database connections closed")
