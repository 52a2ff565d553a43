"""Circuit breaker for provider resilience.

Stops hammering a provider that keeps failing:
1. CLOSED state: Normal operation, calls pass through
2. OPEN state: Fast-fail calls without contacting the provider
3. HALF_OPEN state: Let a limited number of probe calls through

State transitions:
- CLOSED -> OPEN: After failure_threshold consecutive counted failures
- OPEN -> HALF_OPEN: After timeout_seconds
- HALF_OPEN -> CLOSED: After a successful probe
- HALF_OPEN -> OPEN: If a probe fails

Only failures accepted by ``counts_as_failure`` move the breaker, so a
provider rejecting one bad recipient does not open the circuit for everyone.
"""

import threading
import time
from enum import Enum
from typing import Callable, Any, Optional, Dict

from infrastructure.logging import get_module_logger

logger = get_module_logger()


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(Exception):
    """Raised when the circuit is open and the call is rejected."""


class CircuitBreaker:
    """Circuit breaker for provider calls.

    Args:
        name: Name of the circuit (typically provider name)
        failure_threshold: Consecutive counted failures before opening
        timeout_seconds: Seconds to wait before probing recovery (HALF_OPEN)
        half_open_max_calls: Max concurrent probes in HALF_OPEN state
        counts_as_failure: Predicate deciding whether an exception trips the
            breaker. Defaults to every exception.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        timeout_seconds: float = 60,
        half_open_max_calls: int = 3,
        counts_as_failure: Optional[Callable[[Exception], bool]] = None,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.half_open_max_calls = half_open_max_calls
        self._counts_as_failure = counts_as_failure or (lambda exc: True)

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._half_open_calls = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        with self._lock:
            return self._state

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """Execute function through the circuit breaker.

        Raises:
            CircuitBreakerOpenError: If circuit is open
            Exception: Any exception raised by func
        """
        with self._lock:
            if self._state == CircuitState.OPEN:
                remaining = self._seconds_until_probe()
                if remaining > 0:
                    logger.warning(
                        "circuit_breaker_open",
                        name=self.name,
                        failure_count=self._failure_count,
                        retry_in_seconds=int(remaining),
                    )
                    raise CircuitBreakerOpenError(
                        f"Circuit breaker '{self.name}' is OPEN. "
                        f"Retry in {int(remaining)} seconds."
                    )
                self._transition(CircuitState.HALF_OPEN)

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls >= self.half_open_max_calls:
                    raise CircuitBreakerOpenError(
                        f"Circuit breaker '{self.name}' is HALF_OPEN "
                        f"(max concurrent probes reached)."
                    )
                self._half_open_calls += 1

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._on_failure(e)
            raise
        else:
            self._on_success()
            return result
        finally:
            with self._lock:
                if self._half_open_calls > 0:
                    self._half_open_calls -= 1

    def _on_success(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.CLOSED)
            self._failure_count = 0

    def _on_failure(self, exception: Exception) -> None:
        if not self._counts_as_failure(exception):
            self._on_success()
            return

        with self._lock:
            self._failure_count += 1
            if self._state == CircuitState.HALF_OPEN:
                logger.warning(
                    "circuit_breaker_recovery_failed",
                    name=self.name,
                    error=str(exception),
                )
                self._transition(CircuitState.OPEN)
            elif self._failure_count >= self.failure_threshold:
                logger.error(
                    "circuit_breaker_threshold_exceeded",
                    name=self.name,
                    failure_count=self._failure_count,
                    threshold=self.failure_threshold,
                    error=str(exception),
                )
                self._transition(CircuitState.OPEN)

    def _seconds_until_probe(self) -> float:
        if self._opened_at is None:
            return 0
        return self.timeout_seconds - (time.monotonic() - self._opened_at)

    def _transition(self, state: CircuitState) -> None:
        logger.info("circuit_breaker_state_changed", name=self.name, state=state.value)
        self._state = state
        self._half_open_calls = 0
        if state == CircuitState.OPEN:
            self._opened_at = time.monotonic()
        else:
            self._failure_count = 0
            self._opened_at = None if state == CircuitState.CLOSED else self._opened_at

    def get_stats(self) -> dict:
        """Get circuit breaker statistics."""
        with self._lock:
            return {
                "name": self.name,
                "state": self._state.value,
                "failure_count": self._failure_count,
                "half_open_calls": self._half_open_calls,
            }

    def reset(self) -> None:
        """Manually reset the breaker to CLOSED."""
        with self._lock:
            self._transition(CircuitState.CLOSED)


_circuit_breaker_registry: Dict[str, CircuitBreaker] = {}


def register_circuit_breaker(cb: CircuitBreaker) -> CircuitBreaker:
    """Register a circuit breaker for monitoring."""
    _circuit_breaker_registry[cb.name] = cb
    return cb


def get_all_circuit_breaker_stats() -> dict:
    """Get statistics for all registered circuit breakers."""
    return {name: cb.get_stats() for name, cb in _circuit_breaker_registry.items()}
