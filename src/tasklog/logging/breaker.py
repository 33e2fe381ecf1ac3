"""
Circuit breaker guarding the remote sink.

    CLOSED ──(failures >= failure_threshold)──▶ OPEN
    OPEN ──(reset_timeout elapsed, next allow_attempt)──▶ HALF_OPEN
    HALF_OPEN ──(successes >= success_threshold)──▶ CLOSED
    HALF_OPEN ──(any failure)──▶ OPEN
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from tasklog.config.models import CircuitBreakerConfig

_log = logging.getLogger("tasklog.breaker")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerSnapshot:
    """Read-only view of the breaker for diagnostics.

    ``last_failure_time`` is wall-clock epoch seconds. ``last_failure_monotonic``
    is the reading the cooldown is measured from.
    """

    state: CircuitState
    consecutive_failures: int
    consecutive_successes: int
    last_failure_time: Optional[float]
    last_failure_monotonic: Optional[float]


class CircuitBreaker:
    """Failure-isolation state machine for the remote sink.

    The breaker never calls the remote itself. Callers ask `allow_attempt()`
    and report each outcome exactly once through `record_success()` or
    `record_failure()`. Outcomes may arrive from another thread, so every
    transition happens under a single lock.

    Args:
        config: Thresholds and cooldown.
        clock: Monotonic time source in seconds, used for the cooldown.
        wall_clock: Epoch time source in seconds, reported in snapshots.
    """

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._last_failure_monotonic: Optional[float] = None
        self._last_failure_time: Optional[float] = None

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def allow_attempt(self) -> bool:
        """Whether a remote attempt may be made now.

        An OPEN breaker whose cooldown has elapsed moves to HALF_OPEN here
        and admits the attempt.
        """
        with self._lock:
            if self._state is CircuitState.OPEN:
                if not self._cooldown_elapsed():
                    return False
                self._transition(CircuitState.HALF_OPEN)
                self._successes = 0
            return True

    def record_success(self) -> None:
        with self._lock:
            self._failures = 0
            if self._state is CircuitState.HALF_OPEN:
                self._successes += 1
                if self._successes >= self._config.success_threshold:
                    self._successes = 0
                    self._transition(CircuitState.CLOSED)

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            self._successes = 0
            self._last_failure_monotonic = self._clock()
            self._last_failure_time = self._wall_clock()
            if self._state is CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN)
            elif self._state is CircuitState.CLOSED and self._failures >= self._config.failure_threshold:
                self._transition(CircuitState.OPEN)

    def snapshot(self) -> BreakerSnapshot:
        with self._lock:
            return BreakerSnapshot(
                state=self._state,
                consecutive_failures=self._failures,
                consecutive_successes=self._successes,
                last_failure_time=self._last_failure_time,
                last_failure_monotonic=self._last_failure_monotonic,
            )

    def reset(self) -> None:
        """Return to a pristine CLOSED breaker."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failures = 0
            self._successes = 0
            self._last_failure_monotonic = None
            self._last_failure_time = None

    # Lock must be held by the callers below.

    def _cooldown_elapsed(self) -> bool:
        if self._last_failure_monotonic is None:
            return True
        return self._clock() - self._last_failure_monotonic >= self._config.reset_timeout

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        level = logging.WARNING if new_state is CircuitState.OPEN else logging.INFO
        _log.log(
            level,
            "Remote sink circuit %s -> %s (consecutive failures: %d)",
            old_state.value,
            new_state.value,
            self._failures,
        )
