"""Engine and session factory setup."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from spiceworld.infrastructure.persistence.tables import Base

# Seconds a unit of work waits for a competing transaction's lock.
DEFAULT_LOCK_TIMEOUT = 10.0


def create_database_engine(
    url: str, create_schema: bool = True, lock_timeout: float = DEFAULT_LOCK_TIMEOUT
) -> Engine:
    if url.startswith("sqlite"):
        connect_args = {"timeout": lock_timeout, "check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            # The database lives in its one connection.  A pool of exactly
            # that connection hands it to one session at a time, so units of
            # work queue up instead of sharing (and rolling back) each
            # other's transactions.
            engine = create_engine(
                url,
                connect_args=connect_args,
                poolclass=QueuePool,
                pool_size=1,
                max_overflow=0,
                pool_timeout=lock_timeout,
            )
        else:
            engine = create_engine(url, connect_args=connect_args)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(url, pool_pre_ping=True, pool_timeout=lock_timeout)

    if create_schema:
        Base.metadata.create_all(engine)
    return engine


def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def is_lock_timeout(exc: BaseException | None) -> bool:
    """True for errors raised when waiting for a connection or a lock ran out."""
    if isinstance(exc, PoolTimeoutError):
        return True
    return isinstance(exc, OperationalError) and "database is locked" in str(exc.orig)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
