"""Bounded retry primitive shared by every "wait for it to be created" loop.

Both the Selector (waiting for a pipeline to appear) and the Walker
(waiting for a stage pod to be scheduled) go through :func:`retry_until`,
so a timeout is always reported the same way: which subject, how long we
waited, and the last failed attempt.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TypeVar

from buildtail.core.errors import QueryFailure, WaitCancelledError, WaitTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def sleep_or_cancel(interval: float, stop: threading.Event | None) -> None:
    """Sleep for *interval* seconds, raising if *stop* is set meanwhile."""
    if stop is None:
        time.sleep(interval)
        return
    if stop.wait(interval):
        raise WaitCancelledError("wait cancelled")


def retry_until(
    attempt: Callable[[], T | None],
    *,
    subject: str,
    interval: float,
    timeout: float,
    error_cls: type[WaitTimeoutError] = WaitTimeoutError,
    retry_on: tuple[type[Exception], ...] = (QueryFailure,),
    stop: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float, threading.Event | None], None] = sleep_or_cancel,
) -> T:
    """Call *attempt* until it returns a non-``None`` value.

    The first attempt is made immediately.  Exceptions listed in
    *retry_on* count as failed attempts and are kept as the timeout's
    ``last_error``; anything else propagates.  A *timeout* of zero makes
    exactly one attempt.

    Raises
    ------
    WaitTimeoutError
        (or *error_cls*) once *timeout* seconds have elapsed without a
        successful attempt.
    WaitCancelledError
        If *stop* is set while sleeping between attempts.
    """
    start = clock()
    last_error: Exception | None = None
    while True:
        try:
            result = attempt()
        except retry_on as exc:
            last_error = exc
            logger.debug("attempt for %s failed: %s", subject, exc)
        else:
            if result is not None:
                return result

        elapsed = clock() - start
        if elapsed >= timeout:
            raise error_cls(subject, elapsed, last_error)
        sleep(min(interval, max(timeout - elapsed, 0.0)), stop)
