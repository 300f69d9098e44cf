from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from circuit_breaker_state import (
    BreakerOpenError,
    CallTimeoutError,
    CircuitBreakerState,
)
from circuit_breaker_state.integrations import AsyncCircuit, Circuit

MakeBreaker = Callable[..., CircuitBreakerState]


def test_circuit_passes_through_result_and_records_success(
    make_breaker: MakeBreaker,
) -> None:
    breaker = make_breaker()
    circuit = Circuit(lambda greeting, name: f"{greeting} {name}", breaker=breaker)

    assert circuit("hello", name="world") == "hello world"
    assert breaker.stats.snapshot().successes == 1


def test_circuit_records_failure_and_reraises(make_breaker: MakeBreaker) -> None:
    breaker = make_breaker(max_failures=2)

    def _fail() -> None:
        raise RuntimeError("nope")

    circuit = Circuit(_fail, breaker=breaker)

    with pytest.raises(RuntimeError, match="nope"):
        circuit()

    assert breaker.consecutive_failures == 1
    assert breaker.stats.snapshot().failures == 1


def test_circuit_short_circuits_while_open(make_breaker: MakeBreaker) -> None:
    breaker = make_breaker(max_failures=1)
    calls = 0

    def _fail() -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("nope")

    circuit = Circuit(_fail, breaker=breaker)

    with pytest.raises(RuntimeError):
        circuit()
    with pytest.raises(BreakerOpenError) as excinfo:
        circuit()

    assert calls == 1
    assert excinfo.value.code == "EPERM"
    assert breaker.stats.snapshot().executions == 1


def test_circuit_builds_its_own_breaker() -> None:
    def fetch_profile() -> str:
        return "profile"

    circuit = Circuit(fetch_profile, max_failures=1, reset_delay_ms=0)

    assert circuit() == "profile"
    assert circuit.breaker.name.endswith("fetch_profile")
    assert circuit.breaker.max_failures == 1
    assert circuit.breaker.reset_delay_ms == 0


@pytest.mark.asyncio
async def test_async_circuit_recovers_after_reset_delay() -> None:
    attempts = 0

    async def _flaky() -> str:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("failed.")
        return "hello world"

    circuit = AsyncCircuit(_flaky, max_failures=1, reset_delay_ms=10)

    with pytest.raises(RuntimeError, match="failed."):
        await circuit()
    with pytest.raises(BreakerOpenError):
        await circuit()

    await asyncio.sleep(0.05)

    assert circuit.breaker.half_open is True
    assert await circuit() == "hello world"
    assert circuit.breaker.closed is True
    assert attempts == 2


@pytest.mark.asyncio
async def test_async_circuit_timeout_records_failure_and_timeout_stat(
    make_breaker: MakeBreaker,
) -> None:
    breaker = make_breaker()
    cancelled = asyncio.Event()

    async def _slow() -> str:
        try:
            await asyncio.sleep(1.0)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return "late"

    circuit = AsyncCircuit(_slow, breaker=breaker, timeout_ms=10)

    with pytest.raises(CallTimeoutError) as excinfo:
        await circuit()

    assert excinfo.value.code == "ETIMEDOUT"
    assert excinfo.value.timeout_ms == 10
    assert isinstance(excinfo.value.__cause__, TimeoutError)
    assert cancelled.is_set()
    snapshot = breaker.stats.snapshot()
    assert snapshot.failures == 1
    assert snapshot["timeout"] == 1


@pytest.mark.asyncio
async def test_async_circuit_own_timeout_error_is_not_a_call_timeout(
    make_breaker: MakeBreaker,
) -> None:
    breaker = make_breaker()

    async def _raises_timeout() -> None:
        raise TimeoutError("upstream said so")

    circuit = AsyncCircuit(_raises_timeout, breaker=breaker, timeout_ms=1_000)

    with pytest.raises(TimeoutError, match="upstream said so") as excinfo:
        await circuit()

    assert not isinstance(excinfo.value, CallTimeoutError)
    assert breaker.stats.get("timeout") == 0
    assert breaker.stats.get("failures") == 1


@pytest.mark.asyncio
async def test_async_circuit_fast_call_within_timeout_succeeds(
    make_breaker: MakeBreaker,
) -> None:
    breaker = make_breaker()

    async def _fast() -> int:
        return 42

    circuit = AsyncCircuit(_fast, breaker=breaker, timeout_ms=1_000)

    assert await circuit() == 42
    assert breaker.stats.snapshot().successes == 1


def test_async_circuit_rejects_non_positive_timeout() -> None:
    async def _noop() -> None:
        return None

    with pytest.raises(ValueError, match="timeout_ms"):
        AsyncCircuit(_noop, timeout_ms=0)
