# Overview: Service-layer helpers for concurrent writes; locking, retries and compare-and-set updates.

from __future__ import annotations

import time

from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (locked database) and StaleDataError
    (version_id conflicts on Order and Product).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def compare_and_set(model, row_id: int, expected: dict, values: dict) -> bool:
    """
    Conditionally update one row in a single statement.

    The row is written only if every column in `expected` still holds the given
    value (None means IS NULL). Returns True when exactly one row changed.
    Rows with a version_id column get it bumped so later ORM flushes of a stale
    copy fail with StaleDataError instead of overwriting.

    Does not commit.
    """
    stmt = update(model).where(model.id == row_id)
    for column_name, value in expected.items():
        column = getattr(model, column_name)
        stmt = stmt.where(column.is_(None) if value is None else column == value)

    values = dict(values)
    if hasattr(model, "version_id"):
        values["version_id"] = model.version_id + 1

    result = db.session.execute(stmt.values(**values).execution_options(synchronize_session=False))
    return result.rowcount == 1
