"""Tests for infrastructure/circuit_breaker.py.

Covers:
- State machine transitions: CLOSED → OPEN → HALF-OPEN → CLOSED
- CircuitOpenError raised and rejected_calls counter
- Recovery and re-trip through the HALF-OPEN probe
- Untracked exceptions pass through without counting
- reset() forces CLOSED
- status() snapshot

Time is driven by a fake clock, so no test sleeps.
"""

from __future__ import annotations

import threading

import pytest

from infrastructure.circuit_breaker import (
    CircuitBreaker,
    CircuitOpenError,
    CircuitState,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_breaker(clock: FakeClock | None = None, **kwargs) -> CircuitBreaker:
    defaults = {
        "name": "test",
        "failure_threshold": 3,
        "reset_timeout_seconds": 30.0,
        "clock": clock or FakeClock(),
    }
    defaults.update(kwargs)
    return CircuitBreaker(**defaults)


def _trigger_failures(breaker: CircuitBreaker, n: int) -> None:
    for _ in range(n):
        with pytest.raises(RuntimeError):
            breaker.call(_raise_runtime)


def _raise_runtime() -> None:
    raise RuntimeError("simulated failure")


def _succeed() -> str:
    return "ok"


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestInitialState:
    def test_starts_closed(self) -> None:
        b = _make_breaker()
        assert b.state == CircuitState.CLOSED
        assert b.is_open is False

    def test_stats_zero_on_init(self) -> None:
        s = _make_breaker().stats
        assert (s.total_calls, s.successful_calls, s.failed_calls, s.rejected_calls, s.trips) == (
            0,
            0,
            0,
            0,
            0,
        )

    @pytest.mark.parametrize("field", ["failure_threshold", "success_threshold"])
    def test_non_positive_thresholds_rejected(self, field: str) -> None:
        with pytest.raises(ValueError, match=field):
            _make_breaker(**{field: 0})


# ---------------------------------------------------------------------------
# CLOSED → OPEN
# ---------------------------------------------------------------------------


class TestTripping:
    def test_stays_closed_below_threshold(self) -> None:
        b = _make_breaker()
        _trigger_failures(b, 2)
        assert b.state == CircuitState.CLOSED

    def test_opens_at_threshold(self) -> None:
        b = _make_breaker()
        _trigger_failures(b, 3)
        assert b.state == CircuitState.OPEN
        assert b.stats.trips == 1

    def test_success_resets_consecutive_failures(self) -> None:
        b = _make_breaker()
        _trigger_failures(b, 2)
        assert b.call(_succeed) == "ok"
        _trigger_failures(b, 2)
        assert b.state == CircuitState.CLOSED

    def test_open_circuit_rejects_without_calling(self) -> None:
        b = _make_breaker()
        _trigger_failures(b, 3)
        calls = []
        with pytest.raises(CircuitOpenError, match="OPEN") as exc_info:
            b.call(lambda: calls.append(1))
        assert calls == []
        assert exc_info.value.name == "test"
        assert exc_info.value.reset_in_seconds == pytest.approx(30.0)
        assert b.stats.rejected_calls == 1

    def test_untracked_exception_is_not_counted(self) -> None:
        b = _make_breaker(exceptions=(ConnectionError,))
        for _ in range(5):
            with pytest.raises(RuntimeError):
                b.call(_raise_runtime)
        assert b.state == CircuitState.CLOSED
        assert b.stats.failed_calls == 0


# ---------------------------------------------------------------------------
# OPEN → HALF-OPEN → CLOSED / OPEN
# ---------------------------------------------------------------------------


class TestRecovery:
    def test_probe_allowed_after_timeout_and_success_closes(self) -> None:
        clock = FakeClock()
        b = _make_breaker(clock)
        _trigger_failures(b, 3)
        clock.advance(30.0)
        assert b.call(_succeed) == "ok"
        assert b.state == CircuitState.CLOSED

    def test_still_rejects_before_timeout(self) -> None:
        clock = FakeClock()
        b = _make_breaker(clock)
        _trigger_failures(b, 3)
        clock.advance(29.0)
        with pytest.raises(CircuitOpenError):
            b.call(_succeed)

    def test_failed_probe_reopens(self) -> None:
        clock = FakeClock()
        b = _make_breaker(clock)
        _trigger_failures(b, 3)
        clock.advance(31.0)
        _trigger_failures(b, 1)
        assert b.state == CircuitState.OPEN
        assert b.stats.trips == 2
        with pytest.raises(CircuitOpenError):
            b.call(_succeed)

    def test_success_threshold_requires_multiple_probes(self) -> None:
        clock = FakeClock()
        b = _make_breaker(clock, success_threshold=2)
        _trigger_failures(b, 3)
        clock.advance(30.0)
        b.call(_succeed)
        assert b.state == CircuitState.HALF_OPEN
        b.call(_succeed)
        assert b.state == CircuitState.CLOSED


class TestResetAndStatus:
    def test_reset_forces_closed(self) -> None:
        b = _make_breaker()
        _trigger_failures(b, 3)
        b.reset()
        assert b.state == CircuitState.CLOSED
        assert b.call(_succeed) == "ok"

    def test_status_snapshot(self) -> None:
        b = _make_breaker(name="deezer")
        _trigger_failures(b, 1)
        b.call(_succeed)
        status = b.status()
        assert status["name"] == "deezer"
        assert status["state"] == "closed"
        assert status["failure_threshold"] == 3
        assert status["stats"] == {"total": 2, "success": 1, "failed": 1, "rejected": 0, "trips": 0}


class TestThreadSafety:
    def test_concurrent_failures_trip_once_counted(self) -> None:
        b = _make_breaker(failure_threshold=50)
        barrier = threading.Barrier(10)

        def worker() -> None:
            barrier.wait()
            for _ in range(5):
                try:
                    b.call(_raise_runtime)
                except (RuntimeError, CircuitOpenError):
                    pass

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert b.stats.total_calls == 50
        assert b.stats.failed_calls == 50
        assert b.state == CircuitState.OPEN
