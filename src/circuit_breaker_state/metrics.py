"""Observability hooks for circuit breakers."""

from collections.abc import Callable
from typing import Protocol

from circuit_breaker_state.breaker import CircuitBreakerState
from circuit_breaker_state.events import BreakerEvent, EventCallback
from circuit_breaker_state.logging import (
    StructuredLogger,
    get_logger,
    log_info,
    log_warning,
)
from circuit_breaker_state.state import CircuitState, StatsSnapshot

_TRANSITIONS: dict[BreakerEvent, CircuitState] = {
    BreakerEvent.OPENED: CircuitState.OPEN,
    BreakerEvent.HALF_OPENED: CircuitState.HALF_OPEN,
    BreakerEvent.CLOSED: CircuitState.CLOSED,
}


class BreakerListener(Protocol):
    """Listener protocol for circuit breaker events."""

    def on_state_change(
        self, name: str, new: CircuitState, snapshot: StatsSnapshot
    ) -> None:
        """Handle circuit state transitions."""

    def on_call_succeeded(self, name: str, snapshot: StatsSnapshot) -> None:
        """Handle a recorded success."""

    def on_call_failed(self, name: str, snapshot: StatsSnapshot) -> None:
        """Handle a recorded failure."""


def attach_listener(
    breaker: CircuitBreakerState,
    listener: BreakerListener,
) -> Callable[[], None]:
    """Subscribe ``listener`` to every event of ``breaker``.

    Returns:
        A callable that unsubscribes the listener again.
    """
    name = breaker.name
    subscriptions: list[tuple[BreakerEvent, EventCallback]] = []

    for event, state in _TRANSITIONS.items():

        def _on_transition(
            snapshot: StatsSnapshot, state: CircuitState = state
        ) -> None:
            listener.on_state_change(name, state, snapshot)

        subscriptions.append((event, _on_transition))

    def _on_succeeded(snapshot: StatsSnapshot) -> None:
        listener.on_call_succeeded(name, snapshot)

    def _on_failed(snapshot: StatsSnapshot) -> None:
        listener.on_call_failed(name, snapshot)

    subscriptions.append((BreakerEvent.SUCCEEDED, _on_succeeded))
    subscriptions.append((BreakerEvent.FAILED, _on_failed))

    for event, callback in subscriptions:
        breaker.events.on(event, callback)

    def _detach() -> None:
        for event, callback in subscriptions:
            breaker.events.off(event, callback)

    return _detach


class LoggingListener:
    """Listener that writes breaker activity to a structured logger."""

    def __init__(self, logger: StructuredLogger | None = None) -> None:
        self._logger = get_logger(__name__) if logger is None else logger

    def on_state_change(
        self, name: str, new: CircuitState, snapshot: StatsSnapshot
    ) -> None:
        log_fn = log_warning if new == CircuitState.OPEN else log_info
        log_fn(
            self._logger,
            "circuit_breaker.state_changed",
            breaker=name,
            state=new.value,
            stats=snapshot.as_dict(),
        )

    def on_call_succeeded(self, name: str, snapshot: StatsSnapshot) -> None:
        log_info(
            self._logger,
            "circuit_breaker.call_succeeded",
            breaker=name,
            stats=snapshot.as_dict(),
        )

    def on_call_failed(self, name: str, snapshot: StatsSnapshot) -> None:
        log_warning(
            self._logger,
            "circuit_breaker.call_failed",
            breaker=name,
            stats=snapshot.as_dict(),
        )
