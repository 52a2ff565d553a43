"""Resilience patterns: circuit breaker for provider calls."""

from infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    CircuitState,
    get_all_circuit_breaker_stats,
    register_circuit_breaker,
)

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "get_all_circuit_breaker_stats",
    "register_circuit_breaker",
]
