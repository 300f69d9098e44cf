"""Execution counters for circuit breakers."""

from collections.abc import Callable

from circuit_breaker_state.state import StatsSnapshot

# Largest integer a JSON consumer can hold exactly (IEEE-754 double).
MAX_COUNT = 2**53 - 1

PROTECTED_KEYS = frozenset({"open"})


class Stats:
    """Mutable counter table owned by one breaker.

    Keys are open-ended: collaborators may count their own categories (for
    example ``"timeout"``). ``"open"`` is reserved for the computed state flag
    in snapshots and is never stored.
    """

    def __init__(self, is_open: Callable[[], bool]) -> None:
        """Create a counter table.

        Args:
            is_open: Callable reporting whether the owning breaker is open.
                Evaluated on every ``snapshot()`` call.
        """
        self._is_open = is_open
        self._counts: dict[str, int] = {
            "executions": 0,
            "successes": 0,
            "failures": 0,
        }

    def increment(self, key: str) -> None:
        """Add one to ``key``, wrapping to zero at ``MAX_COUNT``."""
        if key in PROTECTED_KEYS:
            return
        current = self._counts.get(key, 0)
        if current >= MAX_COUNT:
            current = 0
        self._counts[key] = current + 1

    def reset(self, key: str) -> None:
        if key in PROTECTED_KEYS:
            return
        self._counts[key] = 0

    def reset_all(self) -> None:
        for key in self._counts:
            self._counts[key] = 0

    def get(self, key: str) -> int:
        return self._counts.get(key, 0)

    def snapshot(self) -> StatsSnapshot:
        """Return an immutable copy of all counters plus the live open flag."""
        return StatsSnapshot(open=self._is_open(), counts=self._counts)
