"""Circuit breaker exceptions.

Callers can distinguish between:
  - A call being blocked because the circuit is open (``BreakerOpenError``,
    returned by ``CircuitBreakerState.test()`` and raised by adapters).
  - A guarded call abandoned by an adapter timeout (``CallTimeoutError``).
"""


class CircuitBreakerError(Exception):
    """Base exception for the circuit breaker package."""


class BreakerOpenError(CircuitBreakerError):
    """Signals a call blocked because the circuit is open.

    Attributes:
        name: Stable discriminator for the error kind.
        code: Stable error code.
        breaker_name: Name of the breaker that blocked the call.
    """

    name = "CircuitBreakerOpenError"
    code = "EPERM"

    def __init__(self, breaker_name: str | None = None) -> None:
        """Initialize an open-circuit error.

        Args:
            breaker_name: Breaker blocking the call, if known.
        """
        self.breaker_name = breaker_name
        super().__init__("Circuit breaker is open")

    @property
    def message(self) -> str:
        return str(self)


class CallTimeoutError(CircuitBreakerError, TimeoutError):
    """Raised by adapters when a guarded call exceeds its timeout."""

    name = "CallTimeoutError"
    code = "ETIMEDOUT"

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__("Command timed out")

    @property
    def message(self) -> str:
        return str(self)
