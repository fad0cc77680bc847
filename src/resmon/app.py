"""resmon - Textual display of resource snapshots."""

import logging
from collections.abc import Mapping
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from resmon.models import MemoryStats, NetworkStats, ProcessStats, Snapshot
from resmon.monitor import ResourceMonitor

logger = logging.getLogger(__name__)


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string."""
    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    unit_index = 0
    while size >= 1024 and unit_index < len(units) - 1:
        size = size / 1024
        unit_index += 1
    return f"{size:.2f} {units[unit_index]}"


def usage_bar(percent: float, color: str, width: int = 20) -> str:
    """Render a percentage as a fixed-width markup bar."""
    filled = min(int(percent / 100 * width), width)
    return f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (width - filled)


class HeaderStats(Static):
    """Header widget showing CPU, memory and swap usage."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._cpu_percents: tuple[float, ...] = ()
        self._memory = MemoryStats(total=0, used=0)
        self._swap = MemoryStats(total=0, used=0)

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_cpu_info(), id="cpu-info"),
            Static(self._get_mem_info(), id="mem-info"),
        )

    def update_stats(self, snapshot: Snapshot) -> None:
        """Update the statistics from a snapshot."""
        self._cpu_percents = snapshot.cpu
        self._memory = snapshot.memory
        self._swap = snapshot.swap
        self._refresh_display()

    def _refresh_display(self) -> None:
        try:
            self.query_one("#cpu-info", Static).update(self._get_cpu_info())
            self.query_one("#mem-info", Static).update(self._get_mem_info())
        except Exception:
            pass  # Widget not mounted yet

    def _get_cpu_info(self) -> str:
        """Get CPU info display."""
        if not self._cpu_percents:
            return "Waiting for first sample..."
        lines = [
            # Escaped bracket keeps the bar container out of markup parsing
            f"CPU{i:<2} \\[{usage_bar(usage, 'green')}] {usage:5.1f}%"
            for i, usage in enumerate(self._cpu_percents)
        ]
        average = sum(self._cpu_percents) / len(self._cpu_percents)
        lines.append(f"Avg   {average:5.1f}% over {len(self._cpu_percents)} cores")
        return "\n".join(lines)

    def _get_mem_info(self) -> str:
        """Get memory and swap display."""
        if self._memory.total == 0:
            return "Waiting for first sample..."

        mem, swap = self._memory, self._swap
        return (
            f"Mem\\[{usage_bar(mem.percent, 'cyan')}] "
            f"{format_bytes(mem.used)}/{format_bytes(mem.total)} ({mem.percent:.1f}%)\n"
            f"Swp\\[{usage_bar(swap.percent, 'yellow')}] "
            f"{format_bytes(swap.used)}/{format_bytes(swap.total)} ({swap.percent:.1f}%)"
        )


class NetworkTable(Container):
    """Container for the per-interface rate table."""

    DEFAULT_CSS = """
    NetworkTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize NetworkTable."""
        super().__init__(*args, **kwargs)
        self._current_interfaces: set[str] = set()

    def compose(self) -> ComposeResult:
        """Compose the network table."""
        yield DataTable(id="network-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#network-table", DataTable)
        table.cursor_type = "row"

        table.add_column("Interface", key="name", width=16)
        table.add_column("RX/s", key="rx", width=14)
        table.add_column("TX/s", key="tx", width=14)

    def update_network(self, network: Mapping[str, NetworkStats]) -> None:
        """
        Update the table with new rates.

        Existing rows are updated in place; interfaces that disappeared are
        removed and new ones appended.
        """
        table = self.query_one("#network-table", DataTable)
        new_interfaces = set(network)

        for name in self._current_interfaces - new_interfaces:
            try:
                table.remove_row(name)
            except Exception:
                pass  # Row may not exist

        for name in sorted(network):
            stats = network[name]
            try:
                if name in self._current_interfaces:
                    table.update_cell(name, "rx", f"{format_bytes(stats.rx)}/s")
                    table.update_cell(name, "tx", f"{format_bytes(stats.tx)}/s")
                else:
                    table.add_row(
                        name,
                        f"{format_bytes(stats.rx)}/s",
                        f"{format_bytes(stats.tx)}/s",
                        key=name,
                    )
            except Exception:
                pass  # Row may have been removed or already exist

        self._current_interfaces = new_interfaces


def describe_processes(processes: ProcessStats) -> str:
    """Summarize process counts on one line."""
    return (
        f"Processes: {processes.total} total, {processes.running} running, "
        f"{processes.sleeping} sleeping, {processes.zombie} zombie"
    )


class ProcessSummary(Static):
    """One-line process count summary."""

    def update_counts(self, processes: ProcessStats) -> None:
        """Update the summary from process counts."""
        self.update(describe_processes(processes))


class ResmonApp(App):
    """Main resmon application."""

    TITLE = "resmon"
    SUB_TITLE = "Resource Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 6;
    }

    Horizontal {
        height: auto;
    }

    #cpu-info {
        width: 1fr;
        padding-right: 2;
    }

    #mem-info {
        width: 1fr;
        padding-left: 2;
    }

    #process-summary, #endpoint-info {
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        monitor: ResourceMonitor | None = None,
        update_queue: Queue[Snapshot] | None = None,
        endpoint: str = "",
    ) -> None:
        """
        Initialize the ResmonApp.

        Args:
            monitor: Monitor feeding ``update_queue``. A local one is created if omitted.
            update_queue: Queue the monitor pushes snapshots to.
            endpoint: Delivery URL shown in the footer line.
        """
        super().__init__()
        self._update_queue: Queue[Snapshot] = update_queue if update_queue is not None else Queue()
        self._monitor = monitor or ResourceMonitor(update_queue=self._update_queue)
        self._endpoint = endpoint

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield NetworkTable()
        yield ProcessSummary("Processes: waiting for first sample...", id="process-summary")
        yield Static(self._endpoint_text(), id="endpoint-info")
        yield Footer()

    def _endpoint_text(self) -> str:
        if not self._endpoint:
            return "Delivery disabled"
        return f"Sending to {self._endpoint}"

    def on_mount(self) -> None:
        """Start the monitor when the app is mounted."""
        try:
            self._monitor.start()
        except Exception as exc:
            logger.exception("Could not read initial metrics")
            self.exit(return_code=1, message=f"resmon: cannot read system metrics: {exc}")
            return
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and render the most recent snapshot."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self.update_ui(snapshot)

    def update_ui(self, snapshot: Snapshot) -> None:
        """Render a snapshot; rendering errors never stop the app."""
        try:
            self.query_one("#header-stats", HeaderStats).update_stats(snapshot)
        except Exception:
            pass

        try:
            self.query_one(NetworkTable).update_network(snapshot.network)
        except Exception:
            pass

        try:
            self.query_one("#process-summary", ProcessSummary).update_counts(snapshot.processes)
        except Exception:
            pass

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()
