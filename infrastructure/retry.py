"""Exponential backoff retry for catalog HTTP calls.

A dropped connection or a read timeout against a public catalog is usually
transient; one or two quick retries turn it into a normal response instead
of an empty strategy. Non-transient errors (4xx, bad JSON) are not retried.

Usage::

    from infrastructure.retry import with_retry

    @with_retry(max_attempts=2, base_seconds=0.25, exceptions=(httpx.TransportError,))
    def fetch_chart() -> dict:
        return client.get("/chart").json()
"""

from __future__ import annotations

import functools
import logging
import random
import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Transport-level failures only: connect errors, timeouts, dropped reads.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


def backoff_seconds(
    attempt: int,
    base_seconds: float,
    max_seconds: float,
    jitter: bool,
) -> float:
    """Wait before retry number *attempt* (1-based): ``base * 2**(attempt-1)``, capped."""
    wait = min(base_seconds * (2 ** (attempt - 1)), max_seconds)
    if jitter:
        wait *= 1 + random.uniform(-0.25, 0.25)  # noqa: S311
    return wait


def with_retry(
    *,
    max_attempts: int = 3,
    base_seconds: float = 0.5,
    max_seconds: float = 4.0,
    jitter: bool = True,
    exceptions: tuple[type[Exception], ...] = TRANSIENT_ERRORS,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[F], F]:
    """Decorator factory for exponential backoff retry.

    The last exception is re-raised unchanged once attempts run out, so a
    circuit breaker wrapping the call sees the real failure.

    Args:
        max_attempts: Total attempts including the first.
        base_seconds: Wait before the first retry.
        max_seconds: Cap on any single wait.
        jitter: Randomize each wait by ±25%.
        exceptions: Exception types that trigger a retry.
        sleep: Sleep function (tests pass a no-op).
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as exc:
                    if attempt == max_attempts:
                        raise
                    wait = backoff_seconds(attempt, base_seconds, max_seconds, jitter)
                    logger.warning(
                        "retry: %s attempt %d/%d failed (%s), retrying in %.2fs",
                        func.__name__,
                        attempt,
                        max_attempts,
                        exc,
                        wait,
                    )
                    sleep(wait)
            raise AssertionError("unreachable")

        return wrapper  # type: ignore[return-value]

    return decorator
