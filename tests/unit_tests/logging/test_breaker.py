"""
Circuit breaker unit tests.

A fake monotonic clock drives the cooldown so no test sleeps.
"""

from __future__ import annotations

import logging
import threading
import time

import pytest

from tasklog.config.models import CircuitBreakerConfig
from tasklog.logging.breaker import BreakerSnapshot, CircuitBreaker, CircuitState

EPOCH = 1_714_566_645.5


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock) -> CircuitBreaker:
    config = CircuitBreakerConfig(failure_threshold=3, reset_timeout_ms=10000, success_threshold=2)
    return CircuitBreaker(config, clock=clock, wall_clock=lambda: EPOCH)


def trip(breaker: CircuitBreaker) -> None:
    for _ in range(breaker.config.failure_threshold):
        assert breaker.allow_attempt()
        breaker.record_failure()


class TestClosed:
    def test_starts_closed(self, breaker):
        assert breaker.state is CircuitState.CLOSED
        assert breaker.allow_attempt()

    def test_stays_closed_below_threshold(self, breaker):
        breaker.record_failure()
        breaker.record_failure()
        assert breaker.state is CircuitState.CLOSED
        assert breaker.snapshot().consecutive_failures == 2

    def test_success_resets_failure_count(self, breaker):
        breaker.record_failure()
        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()
        breaker.record_failure()
        assert breaker.state is CircuitState.CLOSED

    def test_opens_at_threshold(self, breaker, clock):
        trip(breaker)
        snapshot = breaker.snapshot()
        assert snapshot.state is CircuitState.OPEN
        assert snapshot.consecutive_failures == 3
        assert snapshot.last_failure_monotonic == clock.now
        assert snapshot.last_failure_time == EPOCH


class TestOpen:
    def test_rejects_attempts_during_cooldown(self, breaker, clock):
        trip(breaker)
        clock.advance(9.999)
        assert not breaker.allow_attempt()
        assert breaker.state is CircuitState.OPEN

    def test_moves_to_half_open_after_cooldown(self, breaker, clock):
        trip(breaker)
        clock.advance(10)
        assert breaker.allow_attempt()
        assert breaker.state is CircuitState.HALF_OPEN

    def test_late_outcomes_never_leave_open(self, breaker):
        """Completions of attempts admitted before the trip keep the breaker OPEN."""
        trip(breaker)
        breaker.record_success()
        breaker.record_success()
        breaker.record_success()
        assert breaker.state is CircuitState.OPEN
        breaker.record_failure()
        assert breaker.state is CircuitState.OPEN


class TestHalfOpen:
    @pytest.fixture
    def half_open(self, breaker, clock):
        trip(breaker)
        clock.advance(10)
        assert breaker.allow_attempt()
        return breaker

    def test_admits_attempts(self, half_open):
        assert half_open.allow_attempt()
        assert half_open.allow_attempt()

    def test_closes_after_success_threshold(self, half_open):
        half_open.record_success()
        assert half_open.state is CircuitState.HALF_OPEN
        half_open.record_success()
        assert half_open.state is CircuitState.CLOSED
        assert half_open.snapshot().consecutive_failures == 0

    def test_single_failure_reopens_and_restarts_cooldown(self, half_open, clock):
        half_open.record_success()
        clock.advance(5)
        half_open.record_failure()
        assert half_open.state is CircuitState.OPEN
        assert half_open.snapshot().consecutive_successes == 0

        clock.advance(9)
        assert not half_open.allow_attempt()
        clock.advance(1)
        assert half_open.allow_attempt()
        assert half_open.state is CircuitState.HALF_OPEN


def test_reset(breaker):
    trip(breaker)
    breaker.reset()
    assert breaker.snapshot() == BreakerSnapshot(
        state=CircuitState.CLOSED,
        consecutive_failures=0,
        consecutive_successes=0,
        last_failure_time=None,
        last_failure_monotonic=None,
    )


def test_transitions_are_logged(breaker, clock, caplog):
    with caplog.at_level(logging.INFO, logger="tasklog.breaker"):
        trip(breaker)
        clock.advance(10)
        breaker.allow_attempt()

    messages = [(record.levelno, record.getMessage()) for record in caplog.records]
    assert (logging.WARNING, "Remote sink circuit closed -> open (consecutive failures: 3)") in messages
    assert any(level == logging.INFO and "open -> half_open" in text for level, text in messages)


def test_concurrent_outcomes_are_counted_once_each():
    breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=1000))

    def fail_many():
        for _ in range(100):
            breaker.record_failure()

    threads = [threading.Thread(target=fail_many) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert breaker.snapshot().consecutive_failures == 800
    assert breaker.state is CircuitState.CLOSED


def test_snapshot_reports_wall_clock_failure_time():
    breaker = CircuitBreaker()
    before = time.time()
    breaker.record_failure()
    snapshot = breaker.snapshot()

    assert before <= snapshot.last_failure_time <= time.time()
    assert snapshot.last_failure_monotonic is not None
