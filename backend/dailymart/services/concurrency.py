# Overview: Transaction helpers for write operations; locking, retry and store-error mapping.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from ..extensions import db
from ..errors import StoreError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def ensure_no_pending_writes() -> None:
    """
    Refuse to open a write transaction over the caller's uncommitted work.

    A failed or retried write rolls the whole session back, which would
    silently discard changes the caller has added or flushed but not yet
    committed. Such work must be committed or rolled back first.
    """
    session = db.session()
    pending = bool(session.new or session.dirty or session.deleted)
    if not pending and session.in_transaction():
        dbapi_connection = session.connection().connection.dbapi_connection
        pending = bool(getattr(dbapi_connection, "in_transaction", False))
    if pending:
        current_app.logger.error("Write requested while the session holds uncommitted changes")
        raise StoreError("Session has uncommitted changes; commit or roll back first")


def begin_write() -> None:
    """
    Start the current unit of work as a write transaction.

    On SQLite, BEGIN IMMEDIATE takes the database write lock up front so a
    read-check-then-write sequence cannot interleave with another writer.
    Other backends rely on lock_for_update() row locks instead.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (database busy/locked). The session is rolled
    back before each retry so no partial state survives a failed attempt.
    After the last attempt the failure is reported as StoreError.
    """
    if attempts is None:
        attempts = current_app.config.get("STORE_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("STORE_RETRY_BACKOFF", 0.1)

    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                current_app.logger.error("Store operation failed after %d attempts: %s", attempts, exc)
                raise StoreError("Store is unavailable", details={"reason": str(exc.orig)}) from exc
            current_app.logger.warning("Store busy (attempt %d/%d), retrying", attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    raise StoreError("Store operation was not attempted")
