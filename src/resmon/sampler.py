"""Sampling and rate derivation engine for resmon."""

import logging
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from types import MappingProxyType

from resmon.models import (
    CounterBaseline,
    MemoryStats,
    NetworkStats,
    ProcessStats,
    ProcessStatus,
    Snapshot,
)
from resmon.source import MetricsSource, PsutilSource

logger = logging.getLogger(__name__)

# Floor for the elapsed time between ticks, in seconds
MIN_ELAPSED = 0.001


def compute_rates(
    previous: Mapping[str, tuple[int, int]],
    current: Mapping[str, tuple[int, int]],
    elapsed: float,
) -> dict[str, NetworkStats]:
    """
    Derive per-second rates from two sets of cumulative interface counters.

    Interfaces missing from ``previous`` have no rate yet and are left out.
    A counter lower than its baseline (interface reset, rollover) is clamped
    to a zero delta. ``elapsed`` is floored at MIN_ELAPSED.
    """
    elapsed = max(elapsed, MIN_ELAPSED)
    rates: dict[str, NetworkStats] = {}

    for name, (rx, tx) in current.items():
        if name not in previous:
            continue
        last_rx, last_tx = previous[name]
        if rx < last_rx or tx < last_tx:
            logger.debug("Counter reset on %s, clamping delta to zero", name)
        rates[name] = NetworkStats(
            rx=int(max(rx - last_rx, 0) / elapsed),
            tx=int(max(tx - last_tx, 0) / elapsed),
        )

    return rates


def classify_processes(statuses: Iterable[ProcessStatus]) -> ProcessStats:
    """Count processes by status; OTHER only counts toward the total."""
    counts = dict.fromkeys(ProcessStatus, 0)
    for status in statuses:
        counts[status] += 1

    return ProcessStats(
        total=sum(counts.values()),
        running=counts[ProcessStatus.RUNNING],
        sleeping=counts[ProcessStatus.SLEEPING],
        zombie=counts[ProcessStatus.ZOMBIE],
    )


def build_snapshot(
    cpu: Sequence[float],
    memory: MemoryStats,
    swap: MemoryStats,
    network: Mapping[str, NetworkStats],
    processes: ProcessStats,
) -> Snapshot:
    """Assemble a Snapshot from its parts."""
    return Snapshot(
        cpu=tuple(float(usage) for usage in cpu),
        memory=memory,
        swap=swap,
        network=MappingProxyType(dict(network)),
        processes=processes,
    )


class Sampler:
    """
    Turns cumulative counters from a metrics source into Snapshots.

    The sampler is the only stateful component: it keeps the previous tick's
    network counters and the time they were read. ``initialize()`` takes the
    first reading as a baseline without producing a snapshot, so every
    snapshot returned by ``tick()`` carries real rates.
    """

    def __init__(
        self,
        source: MetricsSource | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the Sampler.

        Args:
            source: Metrics source to read from. Defaults to PsutilSource.
            clock: Monotonic clock in fractional seconds.
        """
        self._source = source
        self._clock = clock
        self._baseline: CounterBaseline | None = None

    @property
    def initialized(self) -> bool:
        """Whether a baseline has been captured."""
        return self._baseline is not None

    @property
    def baseline(self) -> CounterBaseline | None:
        """The counters and timestamp the next tick will measure against."""
        return self._baseline

    def initialize(self) -> None:
        """Take the first reading as the baseline."""
        if self._source is None:
            self._source = PsutilSource()

        reading = self._source.refresh()
        baseline = CounterBaseline()
        baseline.commit(reading.counters, self._clock())
        self._baseline = baseline
        logger.debug("Baseline captured for %d interfaces", len(reading.counters))

    def tick(self) -> Snapshot:
        """Refresh the source and return a Snapshot with rates since the last tick."""
        if self._source is None or self._baseline is None:
            raise RuntimeError("Sampler.tick() called before initialize()")

        reading = self._source.refresh()
        now = self._clock()

        network = compute_rates(
            self._baseline.counters,
            reading.counters,
            now - self._baseline.timestamp,
        )
        processes = classify_processes(reading.statuses)

        self._baseline.commit(reading.counters, now)

        return build_snapshot(
            cpu=reading.cpu,
            memory=reading.memory,
            swap=reading.swap,
            network=network,
            processes=processes,
        )
