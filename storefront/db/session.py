# storefront/db/session.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.config import settings
from storefront.core.errors import LedgerBusy

logger = logging.getLogger(__name__)

# execution option that asks SQLite for a write lock at BEGIN
SQLITE_BEGIN_IMMEDIATE = "storefront_sqlite_begin_immediate"

def normalize_url(url: str) -> str:
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url and url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url

def make_engine(url: str, *, lock_timeout_ms: int | None = None) -> Engine:
    url = normalize_url(url)
    timeout_ms = settings.LEDGER_LOCK_TIMEOUT_MS if lock_timeout_ms is None else lock_timeout_ms
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": timeout_ms / 1000.0},
    )

    # pysqlite defers BEGIN until the first write, which would let two readers
    # both see a usable token; take control of BEGIN so a ledger transaction
    # can hold the database write lock from its first SELECT.
    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        if conn.get_execution_options().get(SQLITE_BEGIN_IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine

SQLALCHEMY_DATABASE_URL = normalize_url(settings.DATABASE_URL)

engine = make_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def ledger_transaction(db: Session, *, lock_timeout_ms: int | None = None) -> Iterator[Session]:
    """
    One short transaction around the token ledger.

    Commits on normal exit, rolls back on any exception. A lock wait that runs
    past the timeout surfaces as ``LedgerBusy`` with nothing committed.
    """
    timeout_ms = int(settings.LEDGER_LOCK_TIMEOUT_MS if lock_timeout_ms is None else lock_timeout_ms)
    try:
        if not db.in_transaction():
            conn = db.connection(execution_options={SQLITE_BEGIN_IMMEDIATE: True})
        else:
            conn = db.connection()
        if conn.dialect.name == "postgresql":
            conn.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))
        yield db
        db.commit()
    except OperationalError as exc:
        db.rollback()
        logger.warning("token ledger unavailable: %s", exc.orig)
        raise LedgerBusy() from exc
    except BaseException:
        db.rollback()
        raise
