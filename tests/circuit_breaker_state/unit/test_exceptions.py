from __future__ import annotations

from circuit_breaker_state import (
    BreakerOpenError,
    CallTimeoutError,
    CircuitBreakerError,
)


def test_open_error_exposes_stable_identity() -> None:
    error = BreakerOpenError("svc")

    assert isinstance(error, CircuitBreakerError)
    assert str(error) == "Circuit breaker is open"
    assert error.message == "Circuit breaker is open"
    assert error.name == "CircuitBreakerOpenError"
    assert error.code == "EPERM"
    assert error.breaker_name == "svc"


def test_open_error_without_breaker_name() -> None:
    assert BreakerOpenError().breaker_name is None


def test_timeout_error_is_a_builtin_timeout() -> None:
    error = CallTimeoutError(25)

    assert isinstance(error, TimeoutError)
    assert isinstance(error, CircuitBreakerError)
    assert error.message == "Command timed out"
    assert error.code == "ETIMEDOUT"
    assert error.timeout_ms == 25
