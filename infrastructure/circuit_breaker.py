"""Circuit breaker for music-catalog calls.

The recommendation, trending and resolve endpoints all depend on public
catalogs (Deezer, Spotify/YouTube oEmbed). When one of them is degraded,
each request would otherwise wait out the HTTP timeout plus retries before
the strategy gives up. The breaker short-circuits those calls instead:

    CLOSED     Calls pass through. Consecutive failures are counted.
    OPEN       Calls fail immediately with ``CircuitOpenError``.
    HALF_OPEN  After ``reset_timeout_seconds`` one probe is let through;
               success closes the circuit, failure reopens it.

``CircuitOpenError`` is a source failure like any other: the strategy that
hit it contributes nothing and the trending endpoint serves its fallback.

Usage::

    from infrastructure.circuit_breaker import CircuitBreaker

    catalog_breaker = CircuitBreaker(name="deezer", failure_threshold=3)
    tracks = catalog_breaker.call(catalog.chart, limit=50)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from infrastructure.metrics import record_circuit_rejected, record_circuit_trip

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised instead of calling the catalog while the circuit is OPEN.

    Args:
        name: Breaker name.
        reset_in_seconds: Approximate seconds until the next probe.
    """

    def __init__(self, name: str, reset_in_seconds: float) -> None:
        self.name = name
        self.reset_in_seconds = reset_in_seconds
        super().__init__(
            f"Circuit '{name}' is OPEN, catalog unavailable. "
            f"Next probe in ~{reset_in_seconds:.0f}s."
        )


@dataclass
class CircuitStats:
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    trips: int = 0


class CircuitBreaker:
    """Thread-safe circuit breaker around one external catalog.

    Args:
        name: Used in logs, metrics labels and error messages.
        failure_threshold: Consecutive failures that trip the breaker.
        reset_timeout_seconds: Time spent OPEN before a probe is allowed.
        success_threshold: Probe successes needed to close again.
        exceptions: Exception types counted as failures; anything else
            propagates without touching the failure count.
        clock: Monotonic time source (tests pass a fake).
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        reset_timeout_seconds: float = 30.0,
        success_threshold: int = 1,
        exceptions: tuple[type[Exception], ...] = (Exception,),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold <= 0:
            raise ValueError(f"failure_threshold must be positive, got {failure_threshold}")
        if success_threshold <= 0:
            raise ValueError(f"success_threshold must be positive, got {success_threshold}")
        self.name = name
        self._failure_threshold = failure_threshold
        self._reset_timeout = reset_timeout_seconds
        self._success_threshold = success_threshold
        self._tracked_exceptions = exceptions
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._opened_at = 0.0
        self._lock = threading.Lock()
        self.stats = CircuitStats()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    def _set_state(self, new_state: CircuitState) -> None:
        # Lock must be held.
        if new_state == self._state:
            return
        logger.warning(
            "CircuitBreaker '%s': %s -> %s",
            self.name,
            self._state.value.upper(),
            new_state.value.upper(),
        )
        self._state = new_state

    def _trip(self, exc: Exception) -> None:
        # Lock must be held.
        self._opened_at = self._clock()
        self._success_count = 0
        self.stats.trips += 1
        self._set_state(CircuitState.OPEN)
        record_circuit_trip(self.name)
        logger.error(
            "CircuitBreaker '%s': tripped after %d failures, last: %s",
            self.name,
            self._failure_count,
            exc,
        )

    def _before_call(self) -> None:
        with self._lock:
            self.stats.total_calls += 1
            if self._state != CircuitState.OPEN:
                return
            elapsed = self._clock() - self._opened_at
            if elapsed >= self._reset_timeout:
                self._success_count = 0
                self._set_state(CircuitState.HALF_OPEN)
                return
            self.stats.rejected_calls += 1
        record_circuit_rejected(self.name)
        raise CircuitOpenError(self.name, max(0.0, self._reset_timeout - elapsed))

    def _after_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            self.stats.successful_calls += 1
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self._success_threshold:
                    self._success_count = 0
                    self._set_state(CircuitState.CLOSED)
                    logger.info("CircuitBreaker '%s': catalog recovered", self.name)

    def _after_failure(self, exc: Exception) -> None:
        with self._lock:
            self._failure_count += 1
            self.stats.failed_calls += 1
            if self._state == CircuitState.HALF_OPEN:
                self._trip(exc)
            elif self._failure_count >= self._failure_threshold:
                self._trip(exc)

    def call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call *func* through the breaker.

        Raises:
            CircuitOpenError: The circuit is OPEN and no probe is due.
            Exception: Whatever *func* raised (counted if tracked).
        """
        self._before_call()
        try:
            result = func(*args, **kwargs)
        except self._tracked_exceptions as exc:
            self._after_failure(exc)
            raise
        self._after_success()
        return result

    def reset(self) -> None:
        """Force the circuit CLOSED and clear the failure count."""
        with self._lock:
            self._failure_count = 0
            self._success_count = 0
            self._set_state(CircuitState.CLOSED)

    def status(self) -> dict[str, Any]:
        """Snapshot for the health endpoint."""
        with self._lock:
            return {
                "name": self.name,
                "state": self._state.value,
                "failure_count": self._failure_count,
                "failure_threshold": self._failure_threshold,
                "reset_timeout_seconds": self._reset_timeout,
                "stats": {
                    "total": self.stats.total_calls,
                    "success": self.stats.successful_calls,
                    "failed": self.stats.failed_calls,
                    "rejected": self.stats.rejected_calls,
                    "trips": self.stats.trips,
                },
            }
