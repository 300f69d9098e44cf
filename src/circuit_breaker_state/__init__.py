"""Circuit breaker state machine for guarding unreliable calls.

The breaker decides, before each attempt, whether a call may proceed. It
never performs the call: callers ask ``test()`` first and report the outcome
with ``record_success()`` or ``record_failure()``.

Key behavior notes:
  - ``max_failures`` consecutive failures while ``CLOSED`` open the circuit.
  - While ``OPEN`` a one-shot timer moves the breaker to ``HALF_OPEN`` after
    ``reset_delay_ms``. A delay of zero or less disables the timer and
    ``try_reset()`` is the only way out.
  - In ``HALF_OPEN`` the next reported outcome decides: success closes the
    circuit, failure reopens it.
  - A success reported while ``OPEN`` is counted under ``"failures"``.
"""

from circuit_breaker_state.breaker import CircuitBreakerConfig, CircuitBreakerState
from circuit_breaker_state.events import BreakerEvent, Notifier
from circuit_breaker_state.exceptions import (
    BreakerOpenError,
    CallTimeoutError,
    CircuitBreakerError,
)
from circuit_breaker_state.metrics import (
    BreakerListener,
    LoggingListener,
    attach_listener,
)
from circuit_breaker_state.state import CircuitState, StatsSnapshot
from circuit_breaker_state.stats import MAX_COUNT, Stats
from circuit_breaker_state.timer import (
    AutoScheduler,
    LoopScheduler,
    Scheduler,
    ThreadScheduler,
    TimerHandle,
)

__all__ = [
    "MAX_COUNT",
    "AutoScheduler",
    "BreakerEvent",
    "BreakerListener",
    "BreakerOpenError",
    "CallTimeoutError",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitBreakerState",
    "CircuitState",
    "LoggingListener",
    "LoopScheduler",
    "Notifier",
    "Scheduler",
    "Stats",
    "StatsSnapshot",
    "ThreadScheduler",
    "TimerHandle",
    "attach_listener",
]
