"""Circuit breaker that stops calling a consistently failing provider.

State machine:
    CLOSED    -> (threshold consecutive failures) -> OPEN
    OPEN      -> (reset timeout expires)          -> HALF_OPEN
    HALF_OPEN -> (trial call succeeds)            -> CLOSED
    HALF_OPEN -> (trial call fails)               -> OPEN

Each ProviderClient owns its own breaker; breakers are never shared.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from switchboard.core.exceptions import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerStats:
    """Read-only snapshot of a breaker's counters."""

    name: str
    state: CircuitState
    failures: int
    successes: int
    total_calls: int
    rejected_calls: int
    last_failure_time: float | None


class CircuitBreaker:
    """Async circuit breaker keyed by a circuit name.

    Args:
        name: Circuit name used in logs and CircuitOpenError
        threshold: Consecutive failures that open the circuit
        call_timeout: Deadline in seconds applied to each call (None disables)
        reset_timeout: Seconds the circuit stays OPEN before a trial call
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        name: str,
        *,
        threshold: int = 5,
        call_timeout: float | None = 60.0,
        reset_timeout: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self._name = name
        self._threshold = threshold
        self._call_timeout = call_timeout
        self._reset_timeout = reset_timeout
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._total_calls = 0
        self._rejected_calls = 0
        self._last_failure_time: float | None = None
        self._trial_in_flight = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        self._maybe_transition_to_half_open()
        return self._state

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` through the breaker.

        Raises:
            CircuitOpenError: If the circuit is open, or a half-open trial
                call is already running. ``fn`` is not called.
            Exception: Whatever ``fn`` raises (recorded as a failure).
        """
        self._maybe_transition_to_half_open()

        if self._state == CircuitState.OPEN or (
            self._state == CircuitState.HALF_OPEN and self._trial_in_flight
        ):
            self._rejected_calls += 1
            raise CircuitOpenError(self._name)

        is_trial = self._state == CircuitState.HALF_OPEN
        if is_trial:
            self._trial_in_flight = True

        self._total_calls += 1
        try:
            if self._call_timeout:
                result = await asyncio.wait_for(fn(), timeout=self._call_timeout)
            else:
                result = await fn()
        except Exception:
            self._record_failure()
            raise
        finally:
            if is_trial:
                self._trial_in_flight = False

        self._record_success()
        return result

    def reset(self) -> None:
        """Force the circuit back to CLOSED."""
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._trial_in_flight = False
        logger.info("Circuit breaker %s force reset", self._name)

    def get_stats(self) -> CircuitBreakerStats:
        return CircuitBreakerStats(
            name=self._name,
            state=self.state,
            failures=self._failures,
            successes=self._successes,
            total_calls=self._total_calls,
            rejected_calls=self._rejected_calls,
            last_failure_time=self._last_failure_time,
        )

    def _record_success(self) -> None:
        previous = self._state
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes += 1
        if previous != CircuitState.CLOSED:
            logger.info("Circuit breaker %s closed (was %s)", self._name, previous.value)

    def _record_failure(self) -> None:
        self._failures += 1
        self._last_failure_time = self._clock()

        if self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker %s reopened after failed trial call (failures=%d)",
                self._name,
                self._failures,
            )
        elif self._state == CircuitState.CLOSED and self._failures >= self._threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker %s opened after %d failures (reset in %.0fs)",
                self._name,
                self._failures,
                self._reset_timeout,
            )

    def _maybe_transition_to_half_open(self) -> None:
        if self._state != CircuitState.OPEN or self._last_failure_time is None:
            return
        elapsed = self._clock() - self._last_failure_time
        if elapsed >= self._reset_timeout:
            self._state = CircuitState.HALF_OPEN
            logger.info(
                "Circuit breaker %s half-open after %.1fs", self._name, elapsed
            )
