from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest

from circuit_breaker_state import CircuitBreakerState
from tests.circuit_breaker_state.support.fakes import FakeLogger, FakeScheduler


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    """Provide a scheduler whose timers fire only on demand."""
    return FakeScheduler()


@pytest.fixture
def make_breaker(
    fake_scheduler: FakeScheduler,
    fake_logger: FakeLogger,
) -> Iterator[Callable[..., CircuitBreakerState]]:
    """Build breakers on the fake scheduler and dispose of them afterwards."""
    created: list[CircuitBreakerState] = []

    def _make(**options: int) -> CircuitBreakerState:
        breaker = CircuitBreakerState.create(
            "svc",
            scheduler=fake_scheduler,
            logger=fake_logger,
            **options,
        )
        created.append(breaker)
        return breaker

    yield _make
    for breaker in created:
        breaker.dispose()
