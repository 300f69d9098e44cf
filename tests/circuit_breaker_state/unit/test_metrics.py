from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from circuit_breaker_state import (
    CircuitBreakerState,
    CircuitState,
    LoggingListener,
    StatsSnapshot,
    attach_listener,
)
from tests.circuit_breaker_state.support.fakes import FakeLogger, FakeScheduler

MakeBreaker = Callable[..., CircuitBreakerState]


@dataclass(slots=True)
class _RecordingListener:
    events: list[tuple[str, object]] = field(default_factory=list)

    def on_state_change(
        self, name: str, new: CircuitState, snapshot: StatsSnapshot
    ) -> None:
        self.events.append(("state", (name, new, snapshot.open)))

    def on_call_succeeded(self, name: str, snapshot: StatsSnapshot) -> None:
        self.events.append(("succeeded", (name, snapshot.successes)))

    def on_call_failed(self, name: str, snapshot: StatsSnapshot) -> None:
        self.events.append(("failed", (name, snapshot.failures)))


def test_attached_listener_sees_transitions_and_outcomes(
    make_breaker: MakeBreaker,
    fake_scheduler: FakeScheduler,
) -> None:
    breaker = make_breaker(max_failures=1, reset_delay_ms=10)
    listener = _RecordingListener()
    attach_listener(breaker, listener)

    breaker.record_failure()
    fake_scheduler.fire_pending()
    breaker.record_success()

    assert listener.events == [
        ("state", ("svc", CircuitState.OPEN, True)),
        ("failed", ("svc", 1)),
        ("state", ("svc", CircuitState.HALF_OPEN, False)),
        ("state", ("svc", CircuitState.CLOSED, False)),
        ("succeeded", ("svc", 1)),
    ]


def test_detach_unsubscribes_every_event(make_breaker: MakeBreaker) -> None:
    breaker = make_breaker(max_failures=1)
    listener = _RecordingListener()
    detach = attach_listener(breaker, listener)

    detach()
    breaker.record_failure()
    breaker.try_reset()
    breaker.record_success()

    assert listener.events == []


def test_logging_listener_levels(make_breaker: MakeBreaker) -> None:
    breaker = make_breaker(max_failures=1, reset_delay_ms=0)
    logger = FakeLogger()
    attach_listener(breaker, LoggingListener(logger))

    breaker.record_failure()
    breaker.try_reset()
    breaker.record_success()

    assert [(level, event) for level, event, _ in logger.calls] == [
        ("warning", "circuit_breaker.state_changed"),
        ("warning", "circuit_breaker.call_failed"),
        ("info", "circuit_breaker.state_changed"),
        ("info", "circuit_breaker.state_changed"),
        ("info", "circuit_breaker.call_succeeded"),
    ]
    _, _, fields = logger.calls[0]
    assert fields["breaker"] == "svc"
    assert fields["state"] == "open"
    assert fields["stats"] == {
        "open": True,
        "executions": 0,
        "successes": 0,
        "failures": 0,
    }
