"""Tick loop driving the sampler and reporter for resmon."""

import logging
import threading
from queue import Queue

from resmon.models import Snapshot
from resmon.reporter import Reporter
from resmon.sampler import Sampler

logger = logging.getLogger(__name__)


class ResourceMonitor:
    """
    Resource monitor that samples the host on a fixed interval.

    Each tick asks the Sampler for a Snapshot, hands it to the Reporter
    without waiting for delivery, and pushes it to an optional thread-safe
    Queue for display. The loop runs either in a daemon thread (``start()``)
    or in the calling thread (``run()``).
    """

    def __init__(
        self,
        sampler: Sampler | None = None,
        reporter: Reporter | None = None,
        update_queue: Queue[Snapshot] | None = None,
        interval: float = 1.0,
    ) -> None:
        """
        Initialize the ResourceMonitor.

        Args:
            sampler: Sampler to tick. Defaults to a psutil-backed Sampler.
            reporter: Reporter to deliver snapshots to, or None to skip delivery.
            update_queue: Thread-safe queue to push snapshots to, if any.
            interval: How often to sample (in seconds). Default 1.0s.
        """
        self._sampler = sampler or Sampler()
        self._reporter = reporter
        self._queue = update_queue
        self._interval = max(0.1, interval)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        """Get the current sampling interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the sampling interval."""
        self._interval = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """
        Start the monitoring thread.

        The baseline is captured on the calling thread, so a metrics source
        that cannot be read at all raises here instead of killing the thread.
        """
        if self.is_running:
            return

        self._initialize()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="ResourceMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring loop.

        Args:
            timeout: How long to wait for the thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def run(self) -> None:
        """Sample in the calling thread until stopped."""
        self._initialize()
        self._poll_loop()

    def _initialize(self) -> None:
        # The first snapshot follows one interval after the baseline
        if not self._sampler.initialized:
            self._sampler.initialize()

    def _poll_loop(self) -> None:
        """Main polling loop."""
        while not self._stop_event.wait(timeout=self._interval):
            self.tick_once()

    def tick_once(self) -> Snapshot | None:
        """
        Run a single tick.

        A failing metrics source skips the tick and leaves the baseline
        alone; the next tick measures against the last good reading.
        """
        try:
            snapshot = self._sampler.tick()
        except Exception:
            logger.exception("Metrics refresh failed, skipping tick")
            return None

        if self._reporter is not None:
            self._reporter.submit(snapshot)
        if self._queue is not None:
            self._queue.put(snapshot)
        return snapshot
