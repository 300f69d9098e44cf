"""Core circuit breaker state machine."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from types import TracebackType
from typing import TYPE_CHECKING

from circuit_breaker_state.events import BreakerEvent, Notifier
from circuit_breaker_state.exceptions import BreakerOpenError
from circuit_breaker_state.logging import (
    StructuredLogger,
    get_logger,
    log_info,
    log_warning,
)
from circuit_breaker_state.state import CircuitState
from circuit_breaker_state.stats import Stats
from circuit_breaker_state.timer import AutoScheduler, Scheduler, TimerHandle

if TYPE_CHECKING:
    from circuit_breaker_state.settings import BreakerSettings

_logger = get_logger(__name__)


@dataclass(slots=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration values.

    Attributes:
        max_failures: Consecutive failures while ``CLOSED`` before opening.
        reset_delay_ms: Milliseconds to stay ``OPEN`` before moving to
            ``HALF_OPEN`` on its own. Zero or less disables the automatic
            reset; the breaker then waits for ``try_reset()``.
    """

    max_failures: int = 3
    reset_delay_ms: int = 10_000

    def __post_init__(self) -> None:
        if self.max_failures < 1:
            raise ValueError("max_failures must be >= 1")

    @property
    def automatic_reset(self) -> bool:
        return self.reset_delay_ms > 0


@dataclass(slots=True)
class _PendingReset:
    handle: TimerHandle


class CircuitBreakerState:
    """Health tracker deciding whether calls to a dependency may proceed.

    The breaker never performs the call itself. Callers ask ``test()`` before
    an attempt and report the outcome with ``record_success()`` or
    ``record_failure()``.

    Every state change, including the one made by the reset timer, runs
    under a reentrant lock, so a timer firing on another thread never
    interleaves with an in-flight ``record_*`` or ``try_reset`` call.
    Listeners run while the lock is held and may call back into the breaker
    from the same thread.
    """

    def __init__(
        self,
        name: str = "circuit",
        *,
        config: CircuitBreakerConfig | None = None,
        scheduler: Scheduler | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        """Build a breaker in the ``CLOSED`` state.

        Args:
            name: Breaker name used in log events and open errors.
            config: Breaker behavior configuration. Defaults to
                ``CircuitBreakerConfig()``.
            scheduler: Timer factory for the automatic reset. Defaults to
                ``AutoScheduler()``.
            logger: Structured logger for transition events.
        """
        self.name = name
        self.config = CircuitBreakerConfig() if config is None else config
        self._scheduler = AutoScheduler() if scheduler is None else scheduler
        self._logger = _logger if logger is None else logger
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._pending_reset: _PendingReset | None = None
        self._lock = threading.RLock()
        self._stats = Stats(lambda: self._state == CircuitState.OPEN)
        self._events = Notifier(logger=self._logger)

    @classmethod
    def create(
        cls,
        name: str = "circuit",
        *,
        max_failures: int = 3,
        reset_delay_ms: int = 10_000,
        scheduler: Scheduler | None = None,
        logger: StructuredLogger | None = None,
    ) -> CircuitBreakerState:
        """Build a breaker from plain keyword options."""
        return cls(
            name,
            config=CircuitBreakerConfig(
                max_failures=max_failures,
                reset_delay_ms=reset_delay_ms,
            ),
            scheduler=scheduler,
            logger=logger,
        )

    @classmethod
    def from_settings(
        cls,
        settings: BreakerSettings,
        *,
        name: str = "circuit",
        scheduler: Scheduler | None = None,
        logger: StructuredLogger | None = None,
    ) -> CircuitBreakerState:
        """Build a breaker from environment-driven settings.

        Logging output is set up separately with
        ``circuit_breaker_state.settings.configure_logging(settings)``.
        """
        return cls(
            name,
            config=settings.to_config(),
            scheduler=scheduler,
            logger=logger,
        )

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def open(self) -> bool:
        return self._state == CircuitState.OPEN

    @property
    def half_open(self) -> bool:
        return self._state == CircuitState.HALF_OPEN

    @property
    def closed(self) -> bool:
        return self._state == CircuitState.CLOSED

    @property
    def max_failures(self) -> int:
        return self.config.max_failures

    @property
    def reset_delay_ms(self) -> int:
        return self.config.reset_delay_ms

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def reset_pending(self) -> bool:
        """Whether an automatic reset timer is currently armed."""
        return self._pending_reset is not None

    @property
    def stats(self) -> Stats:
        return self._stats

    @property
    def events(self) -> Notifier:
        return self._events

    def test(self) -> BreakerOpenError | None:
        """Return an error when calls must be blocked, else ``None``.

        Pure read: calling it never changes breaker state.
        """
        if self._state == CircuitState.OPEN:
            return BreakerOpenError(self.name)
        return None

    def record_failure(self) -> None:
        """Report a failed attempt.

        A failure while ``HALF_OPEN`` reopens the breaker at once. Failures
        reported while already ``OPEN`` (the caller skipped ``test()``) are
        still counted.
        """
        with self._lock:
            self._consecutive_failures += 1
            if self._state == CircuitState.HALF_OPEN:
                self._open()
            elif self._consecutive_failures == self.config.max_failures:
                self._open()

            self._stats.increment("executions")
            self._stats.increment("failures")
            self._events.emit(BreakerEvent.FAILED, self._stats.snapshot())

    def record_success(self) -> None:
        """Report a successful attempt.

        A success while ``HALF_OPEN`` closes the breaker. A success reported
        while ``OPEN`` does not close it and is counted under ``"failures"``.
        """
        with self._lock:
            self._consecutive_failures = 0
            if self._state == CircuitState.HALF_OPEN:
                self._close()

            self._stats.increment("executions")
            if self._state == CircuitState.CLOSED:
                self._stats.increment("successes")
                self._events.emit(BreakerEvent.SUCCEEDED, self._stats.snapshot())
                return
            self._stats.increment("failures")
            self._events.emit(BreakerEvent.FAILED, self._stats.snapshot())

    def try_reset(self) -> None:
        """Force a trial window: cancel any reset timer and go ``HALF_OPEN``."""
        with self._lock:
            self._cancel_reset()
            self._half_open()

    def dispose(self) -> None:
        """Cancel any pending reset timer. State is left unchanged."""
        with self._lock:
            self._cancel_reset()

    def __enter__(self) -> CircuitBreakerState:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, state={self._state.value}, "
            f"consecutive_failures={self._consecutive_failures})"
        )

    def _open(self) -> None:
        tripped_after = self._consecutive_failures
        self._cancel_reset()
        self._state = CircuitState.OPEN
        self._consecutive_failures = 0
        log_warning(
            self._logger,
            "circuit_breaker.opened",
            breaker=self.name,
            consecutive_failures=tripped_after,
            reset_delay_ms=self.config.reset_delay_ms,
        )
        self._events.emit(BreakerEvent.OPENED, self._stats.snapshot())
        # A listener may already have moved the breaker on.
        if self.config.automatic_reset and self._state == CircuitState.OPEN:
            self._arm_reset()

    def _half_open(self) -> None:
        self._state = CircuitState.HALF_OPEN
        log_info(
            self._logger,
            "circuit_breaker.half_opened",
            breaker=self.name,
            consecutive_failures=self._consecutive_failures,
        )
        self._events.emit(BreakerEvent.HALF_OPENED, self._stats.snapshot())

    def _close(self) -> None:
        self._cancel_reset()
        self._state = CircuitState.CLOSED
        log_info(self._logger, "circuit_breaker.closed", breaker=self.name)
        self._events.emit(BreakerEvent.CLOSED, self._stats.snapshot())

    def _arm_reset(self) -> None:
        pending: _PendingReset | None = None

        def _fire() -> None:
            self._on_reset_due(pending)

        pending = _PendingReset(
            handle=self._scheduler.call_later(
                self.config.reset_delay_ms / 1000.0,
                _fire,
            )
        )
        self._pending_reset = pending

    def _on_reset_due(self, pending: _PendingReset | None) -> None:
        with self._lock:
            # Stale timers (cancelled after they started running) must not act.
            if pending is None or pending is not self._pending_reset:
                return
            self._pending_reset = None
            self._half_open()

    def _cancel_reset(self) -> None:
        pending = self._pending_reset
        self._pending_reset = None
        if pending is not None:
            pending.handle.cancel()
