# Overview: Service-layer helpers for locking, write transactions and retry on DB-level contention.

from __future__ import annotations

import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


logger = logging.getLogger(__name__)


class TransientError(RuntimeError):
    """Retries on lock/deadlock or stale-version failures were exhausted (HTTP 503)."""


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the write lock is taken
    up front by begin_write_transaction().
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Open the write transaction for a ledger batch.

    On SQLite this issues BEGIN IMMEDIATE so two concurrent batches cannot
    both read a Unit as available before either writes. Skipped when the
    connection is already inside a transaction (e.g. pending writes from the
    same request).
    """
    if db.engine.dialect.name != "sqlite":
        return
    dbapi_conn = db.session.connection().connection.dbapi_connection
    if not dbapi_conn.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Business errors raised by func are
    never retried.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                logger.warning("Giving up after %d attempts: %s", attempts, exc)
                raise TransientError("Database is busy, please retry") from exc
            logger.info("Retrying after concurrency failure (attempt %d): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
