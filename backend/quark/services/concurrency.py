# Overview: Retry and row-locking helpers shared by every write path.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import QuarkError
from ..extensions import db


class ConcurrencyConflict(QuarkError):
    """A concurrent writer won a race; the whole unit of work may be retried."""
    kind = "conflict"


RETRYABLE_ERRORS = (OperationalError, StaleDataError, ConcurrencyConflict)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a unit of work with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks), StaleDataError
    (optimistic locking conflicts) and ConcurrencyConflict (unique
    violations on allocated numbers). The session is rolled back before
    every retry and before any other exception propagates, so a failed
    unit never leaves partial writes behind.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc
