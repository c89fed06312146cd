"""Retrying of operations that can fail for transient reasons."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")

RETRY_ATTEMPTS = 5
RETRY_DELAY = 0.4


class Unrecoverable(Exception):
    """Wraps an error that must stop retrying at once."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error


def retry(
    fn: Callable[[], T],
    attempts: int = RETRY_ATTEMPTS,
    delay: float = RETRY_DELAY,
    on_retry: Callable[[int, Exception], Any] | None = None,
) -> T:
    """Call ``fn`` until it succeeds or ``attempts`` calls have failed.

    ``on_retry`` is called with the zero-based attempt number and the error
    after every failed attempt. The wait between attempts doubles each time,
    starting at ``delay`` seconds. An ``Unrecoverable`` error stops retrying
    and the error it wraps is raised. When every attempt fails, the last
    error is raised.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    last_error: Exception | None = None
    for attempt in range(attempts):
        try:
            return fn()
        except Unrecoverable as exc:
            raise exc.error
        except Exception as exc:  # noqa: BLE001 - every failure is retried
            last_error = exc
            if on_retry is not None:
                on_retry(attempt, exc)
            if attempt < attempts - 1 and delay > 0:
                time.sleep(delay * (2 ** attempt))
    assert last_error is not None
    raise last_error