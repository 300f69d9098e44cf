"""Call wrappers driving a breaker around plain and async callables."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, ParamSpec, TypeVar

from circuit_breaker_state.breaker import CircuitBreakerState
from circuit_breaker_state.exceptions import CallTimeoutError

T = TypeVar("T")
P = ParamSpec("P")

TIMEOUT_STAT = "timeout"


def _callable_name(func: object) -> str:
    callable_name = getattr(func, "__qualname__", None)
    if callable_name is None:
        callable_name = getattr(func, "__name__", None)
    if callable_name is None:
        callable_name = func.__class__.__qualname__
    return str(callable_name)


class Circuit(Generic[P, T]):
    """Guard a synchronous callable with a breaker.

    Blocked calls raise ``BreakerOpenError`` without invoking ``func``. Any
    ``Exception`` raised by ``func`` is recorded as a failure and re-raised.
    """

    def __init__(
        self,
        func: Callable[P, T],
        *,
        breaker: CircuitBreakerState | None = None,
        max_failures: int = 3,
        reset_delay_ms: int = 10_000,
    ) -> None:
        """Wrap ``func``.

        Args:
            func: Dangerous callable to guard.
            breaker: Breaker to drive. When omitted one is created from
                ``max_failures`` and ``reset_delay_ms``.
            max_failures: Threshold for a breaker created here.
            reset_delay_ms: Reset delay for a breaker created here.
        """
        self._func = func
        self.breaker = (
            CircuitBreakerState.create(
                _callable_name(func),
                max_failures=max_failures,
                reset_delay_ms=reset_delay_ms,
            )
            if breaker is None
            else breaker
        )

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> T:
        error = self.breaker.test()
        if error is not None:
            raise error
        try:
            result = self._func(*args, **kwargs)
        except Exception:
            self.breaker.record_failure()
            raise
        self.breaker.record_success()
        return result


class AsyncCircuit(Generic[P, T]):
    """Guard an async callable with a breaker and an optional timeout."""

    def __init__(
        self,
        func: Callable[P, Awaitable[T]],
        *,
        breaker: CircuitBreakerState | None = None,
        timeout_ms: int | None = None,
        max_failures: int = 3,
        reset_delay_ms: int = 10_000,
    ) -> None:
        """Wrap ``func``.

        Args:
            func: Dangerous async callable to guard.
            breaker: Breaker to drive. When omitted one is created from
                ``max_failures`` and ``reset_delay_ms``.
            timeout_ms: Per-call timeout. A call exceeding it is cancelled,
                counted under the ``"timeout"`` stat and reported as a failure.
            max_failures: Threshold for a breaker created here.
            reset_delay_ms: Reset delay for a breaker created here.
        """
        if timeout_ms is not None and timeout_ms <= 0:
            raise ValueError("timeout_ms must be > 0 when provided")
        self._func = func
        self._timeout_ms = timeout_ms
        self.breaker = (
            CircuitBreakerState.create(
                _callable_name(func),
                max_failures=max_failures,
                reset_delay_ms=reset_delay_ms,
            )
            if breaker is None
            else breaker
        )

    async def __call__(self, *args: P.args, **kwargs: P.kwargs) -> T:
        """Invoke ``func`` under breaker protection.

        Raises:
            BreakerOpenError: When the circuit is open.
            CallTimeoutError: When ``timeout_ms`` elapses first.
            Exception: The original exception from ``func``.
        """
        error = self.breaker.test()
        if error is not None:
            raise error

        timeout_ms = self._timeout_ms
        deadline = asyncio.timeout(None if timeout_ms is None else timeout_ms / 1000.0)
        try:
            async with deadline:
                result = await self._func(*args, **kwargs)
        except TimeoutError as exc:
            self.breaker.record_failure()
            if timeout_ms is None or not deadline.expired():
                raise
            self.breaker.stats.increment(TIMEOUT_STAT)
            raise CallTimeoutError(timeout_ms) from exc
        except Exception:
            self.breaker.record_failure()
            raise
        self.breaker.record_success()
        return result
