"""
Timestamp providers.

Messages capture a timepoint from the manager's provider when they are
created. Providers differ only in the resolution they truncate wall-clock
time to.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class TimeUnit(Enum):
    """Time units, valued by their length in nanoseconds."""

    NANOSECONDS = 1
    MICROSECONDS = 1_000
    MILLISECONDS = 1_000_000
    SECONDS = 1_000_000_000

    def convert(self, duration: int, source: "TimeUnit") -> int:
        """
        Convert a duration expressed in ``source`` into this unit.

        Conversions to a coarser unit truncate.
        """
        return duration * source.value // self.value


@dataclass(frozen=True)
class Timepoint:
    """
    A point in time since the epoch.

    Attributes:
        nanos: Nanoseconds since the epoch
    """

    nanos: int

    def __post_init__(self) -> None:
        if self.nanos < 0:
            raise ValueError(f"Timepoint must be non-negative, got {self.nanos}")

    def get_timestamp(self, unit: TimeUnit) -> int:
        """Return this timepoint expressed in ``unit``."""
        return unit.convert(self.nanos, TimeUnit.NANOSECONDS)


class TimestampProvider(ABC):
    """Source of the current time at a fixed resolution."""

    @property
    @abstractmethod
    def unit(self) -> TimeUnit:
        """Resolution of the timepoints this provider returns."""

    def get_time(self) -> Timepoint:
        """
        Get the current time, truncated to this provider's resolution.

        Returns:
            Current timepoint
        """
        resolution = self.unit.value
        return Timepoint(self._now_ns() // resolution * resolution)

    @abstractmethod
    def _now_ns(self) -> int:
        """Raw clock reading in nanoseconds."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class _WallClockProvider(TimestampProvider):
    def _now_ns(self) -> int:
        return time.time_ns()


class NanoProvider(_WallClockProvider):
    """Nanosecond resolution."""

    @property
    def unit(self) -> TimeUnit:
        return TimeUnit.NANOSECONDS


class MicroProvider(_WallClockProvider):
    """Microsecond resolution."""

    @property
    def unit(self) -> TimeUnit:
        return TimeUnit.MICROSECONDS


class MilliProvider(_WallClockProvider):
    """Millisecond resolution."""

    @property
    def unit(self) -> TimeUnit:
        return TimeUnit.MILLISECONDS


_PROVIDERS: Dict[str, type] = {
    "nano": NanoProvider,
    "micro": MicroProvider,
    "milli": MilliProvider,
}


def get_provider(name: str) -> TimestampProvider:
    """
    Create a timestamp provider by name.

    Args:
        name: One of "nano", "micro" or "milli" (case-insensitive)

    Returns:
        Timestamp provider instance

    Raises:
        ValueError: If the name is unknown
    """
    provider_class = _PROVIDERS.get(name.lower())
    if provider_class is None:
        raise ValueError(
            f"Unknown timestamp provider: {name}. "
            f"Available: {', '.join(sorted(_PROVIDERS))}"
        )
    return provider_class()
