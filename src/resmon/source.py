"""Metrics sources for resmon."""

from typing import Protocol

import psutil

from resmon.models import MemoryStats, ProcessStatus, RawReading


class MetricsSource(Protocol):
    """Anything that can produce a full RawReading on demand."""

    def refresh(self) -> RawReading: ...


class PsutilSource:
    """
    Metrics source backed by psutil.

    psutil.cpu_percent() measures against its previous call, so the first
    reading after construction is primed here and the sampler's own first
    refresh already yields real per-core values.
    """

    def __init__(self) -> None:
        """Initialize the PsutilSource."""
        psutil.cpu_percent(percpu=True)

    def refresh(self) -> RawReading:
        """Read CPU, memory, swap, network counters and process states."""
        cpu_percents = psutil.cpu_percent(percpu=True)

        mem = psutil.virtual_memory()
        swap = psutil.swap_memory()

        return RawReading(
            cpu=cpu_percents,
            memory=MemoryStats(total=mem.total, used=mem.used),
            swap=MemoryStats(total=swap.total, used=swap.used),
            counters=self._collect_counters(),
            statuses=self._collect_statuses(),
        )

    def _collect_counters(self) -> dict[str, tuple[int, int]]:
        """Collect cumulative (received, transmitted) bytes per interface."""
        return {
            name: (counters.bytes_recv, counters.bytes_sent)
            for name, counters in psutil.net_io_counters(pernic=True).items()
        }

    def _collect_statuses(self) -> list[ProcessStatus]:
        """
        Collect the status of every process.

        Processes that vanish mid-scan are skipped; processes whose status
        cannot be read still count, as OTHER.
        """
        statuses: list[ProcessStatus] = []

        for proc in psutil.process_iter():
            try:
                statuses.append(ProcessStatus.from_psutil(proc.status()))
            except psutil.ZombieProcess:
                # Subclass of NoSuchProcess, but the entry is still in the table
                statuses.append(ProcessStatus.ZOMBIE)
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                statuses.append(ProcessStatus.OTHER)

        return statuses
