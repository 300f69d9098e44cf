"""Synchronous event channel for breaker transitions and call outcomes."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

from circuit_breaker_state.logging import StructuredLogger, get_logger, log_exception
from circuit_breaker_state.state import StatsSnapshot

EventCallback = Callable[[StatsSnapshot], object]

_logger = get_logger(__name__)


class BreakerEvent(StrEnum):
    """Event kinds emitted by a breaker. Every payload is a ``StatsSnapshot``."""

    OPENED = "opened"
    HALF_OPENED = "half_opened"
    CLOSED = "closed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class _Registration:
    __slots__ = ("callback", "once")

    def __init__(self, callback: EventCallback, *, once: bool) -> None:
        self.callback = callback
        self.once = once


class Notifier:
    """Registration-ordered publish/subscribe keyed by ``BreakerEvent``.

    Dispatch is synchronous on the emitting call's thread. A callback that
    raises is logged and skipped; the remaining callbacks still run and the
    emitter never sees the exception.
    """

    def __init__(self, *, logger: StructuredLogger | None = None) -> None:
        self._listeners: dict[BreakerEvent, list[_Registration]] = {}
        self._logger = _logger if logger is None else logger

    def on(self, event: BreakerEvent | str, callback: EventCallback) -> EventCallback:
        """Register ``callback`` for every emission of ``event``."""
        self._add(BreakerEvent(event), callback, once=False)
        return callback

    def once(self, event: BreakerEvent | str, callback: EventCallback) -> EventCallback:
        """Register ``callback`` for the next emission of ``event`` only."""
        self._add(BreakerEvent(event), callback, once=True)
        return callback

    def off(self, event: BreakerEvent | str, callback: EventCallback) -> bool:
        """Unregister the earliest registration of ``callback``.

        Returns:
            ``True`` when a registration was removed.
        """
        registrations = self._listeners.get(BreakerEvent(event))
        if not registrations:
            return False
        for index, registration in enumerate(registrations):
            if registration.callback == callback:
                del registrations[index]
                return True
        return False

    def remove_all(self, event: BreakerEvent | str | None = None) -> None:
        if event is None:
            self._listeners.clear()
            return
        self._listeners.pop(BreakerEvent(event), None)

    def listener_count(self, event: BreakerEvent | str) -> int:
        return len(self._listeners.get(BreakerEvent(event), ()))

    def emit(self, event: BreakerEvent | str, snapshot: StatsSnapshot) -> None:
        """Dispatch ``snapshot`` to the current listeners of ``event``."""
        kind = BreakerEvent(event)
        registrations = self._listeners.get(kind)
        if not registrations:
            return
        for registration in tuple(registrations):
            if registration.once:
                try:
                    registrations.remove(registration)
                except ValueError:
                    continue
            try:
                registration.callback(snapshot)
            except Exception:
                log_exception(
                    self._logger,
                    "circuit_breaker.listener_failed",
                    breaker_event=kind.value,
                    listener=getattr(
                        registration.callback,
                        "__qualname__",
                        repr(registration.callback),
                    ),
                )

    def _add(self, event: BreakerEvent, callback: EventCallback, *, once: bool) -> None:
        self._listeners.setdefault(event, []).append(
            _Registration(callback, once=once)
        )
