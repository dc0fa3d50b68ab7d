"""
Atomic execution of ledger mutations with a bounded retry on conflicts.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from app.config import settings
from app.exceptions import ConcurrencyConflictError
from repositories import UnitOfWork

logger = logging.getLogger("pantryledger.concurrency")

T = TypeVar("T")


def run_atomic(
    uow: UnitOfWork,
    operation: Callable[[], T],
    attempts: Optional[int] = None,
    backoff_sec: Optional[float] = None,
) -> T:
    """
    Run ``operation`` inside one unit-of-work transaction.

    A ConcurrencyConflictError rolls the attempt back and re-runs the whole
    operation from a fresh read, up to ``attempts`` times in total, sleeping
    ``backoff_sec * attempt`` in between. Any other error aborts immediately.

    Args:
        uow: unit of work owning the session
        operation: zero-argument callable performing reads and writes via ``uow``
        attempts: total attempts (defaults to settings.conflict_retry_attempts)
        backoff_sec: base delay (defaults to settings.conflict_retry_backoff_sec)

    Returns:
        Whatever ``operation`` returns
    """
    attempts = attempts or settings.conflict_retry_attempts
    backoff_sec = settings.conflict_retry_backoff_sec if backoff_sec is None else backoff_sec

    for attempt in range(1, attempts + 1):
        try:
            with uow.transaction():
                return operation()
        except ConcurrencyConflictError as exc:
            logger.warning(
                "Ledger conflict on attempt %d/%d: %s", attempt, attempts, exc
            )
            if attempt >= attempts:
                raise
            time.sleep(backoff_sec * attempt)
    raise AssertionError("unreachable")
