from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from sqlalchemy import Select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.settings import get_settings

logger = logging.getLogger("app.db")

T = TypeVar("T")

# Deadlocks, lock timeouts and lost insert races on a unique key are worth
# a second attempt; anything else is surfaced straight away.
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (OperationalError, IntegrityError)


def lock_for_update(stmt: Select) -> Select:
    """
    Apply row-level locking for a read-check-then-write unit of work.

    Rows already in the session identity map are overwritten with the locked
    values. NOTE: SQLite ignores SELECT ... FOR UPDATE, PostgreSQL honours it.
    """
    return stmt.with_for_update().execution_options(populate_existing=True)


def run_with_retry(
    db: Session,
    func: Callable[[], T],
    *,
    operation: str,
    attempts: int | None = None,
    backoff_base: float | None = None,
) -> T:
    """
    Execute one unit of work, retrying on concurrency-related failures.

    `func` must do its own reads and writes and commit; on a retryable error
    the session is rolled back before the next attempt so the reads are
    repeated against fresh state. Non-retryable errors roll back and propagate.
    """
    settings = get_settings()
    max_attempts = max(1, attempts if attempts is not None else settings.db_retry_attempts)
    base = backoff_base if backoff_base is not None else settings.db_retry_backoff_seconds

    for attempt in range(max_attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.rollback()
            if attempt >= max_attempts - 1:
                logger.error(
                    "db_unit_of_work_failed",
                    extra={"operation": operation, "attempts": attempt + 1, "error": exc.__class__.__name__},
                )
                raise
            logger.warning(
                "db_unit_of_work_retry",
                extra={"operation": operation, "attempt": attempt + 1, "error": exc.__class__.__name__},
            )
            time.sleep(base * (2**attempt))
        except Exception:
            db.rollback()
            raise
    raise RuntimeError(f"run_with_retry exhausted without result: {operation}")
