"""Circuit breaker state primitives."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType


class CircuitState(StrEnum):
    """Circuit breaker state values."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class StatsSnapshot(Mapping[str, int | bool]):
    """Point-in-time, read-only view of breaker statistics.

    Behaves like a mapping of counter names to values, with the computed
    ``open`` flag reachable under the ``"open"`` key.

    Attributes:
        open: Whether the breaker was ``OPEN`` when the snapshot was taken.
        counts: Counter values keyed by name.
    """

    open: bool
    counts: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))

    def __getitem__(self, key: str) -> int | bool:
        if key == "open":
            return self.open
        return self.counts[key]

    def __iter__(self) -> Iterator[str]:
        yield "open"
        yield from self.counts

    def __len__(self) -> int:
        return len(self.counts) + 1

    def __hash__(self) -> int:
        return hash((self.open, frozenset(self.counts.items())))

    @property
    def executions(self) -> int:
        return self.counts.get("executions", 0)

    @property
    def successes(self) -> int:
        return self.counts.get("successes", 0)

    @property
    def failures(self) -> int:
        return self.counts.get("failures", 0)

    def as_dict(self) -> dict[str, int | bool]:
        """Return a plain ``dict`` copy suitable for logging or JSON export."""
        return {"open": self.open, **self.counts}
