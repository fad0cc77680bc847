"""Data models for resmon."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ProcessStatus(Enum):
    """Process states the sampler counts separately."""

    RUNNING = "running"
    SLEEPING = "sleeping"
    ZOMBIE = "zombie"
    OTHER = "other"

    @classmethod
    def from_psutil(cls, status: str | None) -> "ProcessStatus":
        """Map a psutil status string to a ProcessStatus, OTHER if unknown."""
        for member in (cls.RUNNING, cls.SLEEPING, cls.ZOMBIE):
            if status == member.value:
                return member
        return cls.OTHER


@dataclass(slots=True, frozen=True)
class MemoryStats:
    """Total/used pair for memory or swap, in bytes."""

    total: int
    used: int

    @property
    def percent(self) -> float:
        """Used share of total, 0.0 when there is nothing to use."""
        if self.total <= 0:
            return 0.0
        return self.used / self.total * 100.0

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "used": self.used}


@dataclass(slots=True, frozen=True)
class NetworkStats:
    """Receive/transmit rate of one interface, in bytes per second."""

    rx: int
    tx: int

    def to_dict(self) -> dict[str, int]:
        return {"rx": self.rx, "tx": self.tx}


@dataclass(slots=True, frozen=True)
class ProcessStats:
    """Process counts; running + sleeping + zombie may be less than total."""

    total: int
    running: int
    sleeping: int
    zombie: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "running": self.running,
            "sleeping": self.sleeping,
            "zombie": self.zombie,
        }


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable result of one tick."""

    cpu: tuple[float, ...]
    memory: MemoryStats
    swap: MemoryStats
    network: Mapping[str, NetworkStats]
    processes: ProcessStats

    @property
    def cpu_average(self) -> float:
        """Mean utilization across all cores."""
        if not self.cpu:
            return 0.0
        return sum(self.cpu) / len(self.cpu)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON wire representation of the snapshot."""
        return {
            "cpu": list(self.cpu),
            "mem": self.memory.to_dict(),
            "swap": self.swap.to_dict(),
            "net": {name: stats.to_dict() for name, stats in self.network.items()},
            "proc": self.processes.to_dict(),
        }


@dataclass(slots=True, frozen=True)
class RawReading:
    """One full refresh of the metrics source."""

    cpu: Sequence[float]
    memory: MemoryStats
    swap: MemoryStats
    counters: Mapping[str, tuple[int, int]]  # name -> (rx_bytes, tx_bytes)
    statuses: Sequence[ProcessStatus]


@dataclass(slots=True)
class CounterBaseline:
    """Previous tick's cumulative network counters and when they were taken."""

    counters: dict[str, tuple[int, int]] = field(default_factory=dict)
    timestamp: float = 0.0

    def commit(self, counters: Mapping[str, tuple[int, int]], timestamp: float) -> None:
        """Replace counters and timestamp together."""
        self.counters, self.timestamp = dict(counters), timestamp
