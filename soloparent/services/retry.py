"""
Solo Parent Backend: Retry-on-Lock Combinator
==============================================

What:  Runs a short transactional unit and retries it when MySQL reports a
       lock wait timeout (1205) or a deadlock (1213).
How:   tenacity AsyncRetrying drives the attempts. Every attempt runs the
       unit from scratch and commits; any failure rolls the session back
       before tenacity decides whether to try again. Only transient lock
       errors are retried; everything else propagates after the rollback.

    attempt 1 ──▶ unit(db) ──▶ commit ──▶ done
         │ 1205 / 1213
         ▼ rollback, wait
    attempt 2 ──▶ ...
         │ exhausted
         ▼
    LockContentionError ("Database error while <operation>. Please try again.")

Units must be safe to re-execute after a rollback: no side effect outside
the session (mail, uploads) may happen inside them.
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from soloparent.config import settings
from soloparent.exceptions import LockContentionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOCK_WAIT_TIMEOUT = 1205
DEADLOCK = 1213
TRANSIENT_LOCK_CODES = frozenset({LOCK_WAIT_TIMEOUT, DEADLOCK})


def is_transient_lock_error(exc: BaseException) -> bool:
    """True when a DB-API error carries a lock-wait-timeout or deadlock code."""
    if not isinstance(exc, DBAPIError):
        return False
    args = getattr(exc.orig, "args", ())
    return bool(args) and args[0] in TRANSIENT_LOCK_CODES


async def run_with_lock_retry(
    db: AsyncSession,
    unit: Callable[[AsyncSession], Awaitable[T]],
    operation: str,
    attempts: Optional[int] = None,
    wait_seconds: Optional[float] = None,
) -> T:
    """
    Execute `unit(db)` and commit, retrying on transient lock errors.

    Args:
        db:           Session the unit runs in; committed once per successful attempt.
        unit:         Coroutine function taking the session.
        operation:    Human-readable description used in the final error message.
        attempts:     Maximum attempts (default: settings.lock_retry_attempts).
        wait_seconds: Fixed wait between attempts (default: settings.lock_retry_wait_seconds).

    Raises:
        LockContentionError: every attempt hit a lock wait timeout or deadlock.
    """
    max_attempts = attempts if attempts is not None else settings.lock_retry_attempts
    wait = wait_seconds if wait_seconds is not None else settings.lock_retry_wait_seconds

    try:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(is_transient_lock_error),
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                try:
                    result = await unit(db)
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise
    except DBAPIError as e:
        if not is_transient_lock_error(e):
            raise
        logger.error(
            "Lock contention while %s: giving up after %d attempts", operation, max_attempts
        )
        raise LockContentionError(operation=operation, attempts=max_attempts)

    return result
