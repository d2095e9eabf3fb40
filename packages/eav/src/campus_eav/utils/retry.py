"""
utils/retry.py — Exponential-backoff retry decorator for store writes.

Uses tenacity under the hood, with randomised exponential waits. DuckDB
aborts one side of a write-write conflict with TransactionException; the
whole operation (its transaction included) is re-run.
Each retry is logged with structlog.

Usage:
    from campus_eav.utils.retry import with_retry

    @with_retry(max_attempts=3, base_delay=0.05)
    def write_something(...) -> None: ...

    # Settings-driven defaults (write_retry_attempts / write_retry_base_delay)
    @with_retry()
    def update(...) -> None: ...
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

import duckdb
import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from campus_shared.config import settings

log = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def with_retry(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float = 2.0,
    retry_on: type[Exception] | tuple[type[Exception], ...] = duckdb.TransactionException,
) -> Callable[[F], F]:
    """
    Decorator that re-runs a synchronous function with jittered exponential backoff.

    Delays: random in [0, base_delay * 2^(attempt-1)], capped at max_delay.
    The jitter keeps writers that collided from retrying in lockstep.

    Args:
        max_attempts: Total attempts before re-raising (default from settings).
        base_delay:   Initial delay in seconds (default from settings).
        max_delay:    Maximum delay cap in seconds.
        retry_on:     Exception type(s) that trigger a retry.

    Returns:
        Decorated function. The last exception is re-raised unchanged.
    """

    def decorator(fn: F) -> F:
        attempt_log = log.bind(function=fn.__qualname__)

        def _log_retry(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            attempt_log.warning(
                "retry_attempt",
                attempt=state.attempt_number,
                error=str(exc) if exc else None,
            )

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempts = max_attempts or settings.write_retry_attempts
            delay = settings.write_retry_base_delay if base_delay is None else base_delay
            retrying = Retrying(
                stop=stop_after_attempt(attempts),
                wait=wait_random_exponential(multiplier=delay, max=max_delay),
                retry=retry_if_exception_type(retry_on),
                before_sleep=_log_retry,
                reraise=True,
            )
            return retrying(fn, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
