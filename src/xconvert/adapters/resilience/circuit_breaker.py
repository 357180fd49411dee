"""
Circuit Breaker - Fail Fast While an Upstream Keeps Failing

Counts consecutive transient failures. Once ``failure_threshold`` is reached
the circuit opens and calls fail with ``CircuitOpenError`` without touching
the upstream. After ``break_duration`` seconds exactly one caller is let
through as a half-open probe: success closes the circuit, a transient
failure reopens it for another full cooldown.

State transitions: CLOSED -> OPEN -> HALF_OPEN -> (CLOSED | OPEN). Only the
probe moves the circuit out of HALF_OPEN; calls admitted before the circuit
tripped that finish later do not change its state.

Files that USE this module:
- xconvert.adapters.resilience.policy (outer layer of ResiliencePolicy)
- xconvert.application.health (reports circuit state)
- tests.test_resilience (unit tests)

Files that this module USES:
- xconvert.domain.errors (TransientProviderError, CircuitOpenError)
- xconvert.domain.models (CircuitState)
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, TypeVar

from xconvert.domain.errors import CircuitOpenError, TransientProviderError
from xconvert.domain.models import CircuitState

log = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitBreaker:
    """Thread-safe consecutive-failure circuit breaker."""

    def __init__(
        self,
        failure_threshold: int = 5,
        break_duration: float = 60.0,
        clock: Optional[Callable[[], float]] = None,
        name: str = "upstream",
    ):
        """
        Args:
            failure_threshold: Consecutive transient failures that open the circuit
            break_duration: Seconds the circuit stays open before a probe
            clock: Monotonic clock (defaults to time.monotonic)
            name: Label used in log messages
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if break_duration <= 0:
            raise ValueError("break_duration must be > 0")
        self.failure_threshold = failure_threshold
        self.break_duration = break_duration
        self.name = name
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._probe_in_flight = False

    @property
    def state(self) -> CircuitState:
        """Current state; an expired OPEN circuit is reported as HALF_OPEN."""
        with self._lock:
            if self._state is CircuitState.OPEN and self._cooldown_elapsed():
                return CircuitState.HALF_OPEN
            return self._state

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    def reset(self) -> None:
        """Force the circuit closed and clear the failure counter."""
        with self._lock:
            self._close()

    def call(self, operation: Callable[[], T]) -> T:
        """
        Run ``operation`` through the breaker.

        Raises:
            CircuitOpenError: If the circuit is open, or a probe is already running
            Exception: Whatever ``operation`` raises
        """
        is_probe = self._acquire()
        try:
            result = operation()
        except TransientProviderError:
            self._on_transient_failure(is_probe)
            raise
        except BaseException:
            # Not a signal about upstream health; free the probe slot only
            if is_probe:
                with self._lock:
                    self._probe_in_flight = False
            raise
        self._on_success(is_probe)
        return result

    def _cooldown_elapsed(self) -> bool:
        return self._opened_at is not None and self._clock() - self._opened_at >= self.break_duration

    def _acquire(self) -> bool:
        """Admit a call; returns True if the caller is the half-open probe."""
        with self._lock:
            if self._state is CircuitState.CLOSED:
                return False
            if self._state is CircuitState.OPEN:
                if not self._cooldown_elapsed():
                    raise CircuitOpenError(f"Circuit for {self.name} is open; upstream not contacted")
                self._state = CircuitState.HALF_OPEN
                log.info("Circuit breaker half-open for %s. Testing if service is available", self.name)
            if self._probe_in_flight:
                raise CircuitOpenError(f"Circuit for {self.name} is half-open; probe already in flight")
            self._probe_in_flight = True
            return True

    def _on_success(self, is_probe: bool) -> None:
        with self._lock:
            if is_probe:
                self._close()
                log.info("Circuit breaker reset for %s. Normal operation resumed", self.name)
            elif self._state is CircuitState.CLOSED:
                self._failure_count = 0

    def _on_transient_failure(self, is_probe: bool) -> None:
        with self._lock:
            if is_probe:
                self._open()
                return
            if self._state is not CircuitState.CLOSED:
                # Admitted before the circuit tripped; only the probe decides from here
                return
            self._failure_count += 1
            if self._failure_count >= self.failure_threshold:
                self._open()

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._probe_in_flight = False
        log.error(
            "Circuit breaker opened for %s for %ss due to failures (count=%d)",
            self.name,
            self.break_duration,
            self._failure_count,
        )

    def _close(self) -> None:
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None
        self._probe_in_flight = False
