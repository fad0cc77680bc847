"""Command-line entry point for resmon."""

import argparse
import logging
import sys
from dataclasses import dataclass
from queue import Queue

from resmon.app import ResmonApp
from resmon.models import Snapshot
from resmon.monitor import ResourceMonitor
from resmon.reporter import DEFAULT_ENDPOINT, Reporter
from resmon.sampler import Sampler

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0
DEFAULT_TIMEOUT = 5.0
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Runtime configuration parsed from the command line."""

    interval: float = DEFAULT_INTERVAL
    endpoint: str = DEFAULT_ENDPOINT
    display: bool = True
    timeout: float = DEFAULT_TIMEOUT
    verbose: bool = False
    log_file: str | None = None


def positive_float(value: str, default: float, name: str) -> float:
    """Parse a positive number, falling back to ``default`` on bad input."""
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        parsed = 0.0
    if not 0 < parsed < float("inf"):
        logger.warning("Invalid %s %r, using %s", name, value, default)
        return default
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resmon",
        description="Monitor host resource usage and send JSON snapshots to an endpoint.",
    )
    # Numbers stay strings here so bad values fall back instead of aborting
    parser.add_argument(
        "-i",
        "--interval",
        metavar="SECONDS",
        default=str(DEFAULT_INTERVAL),
        help="sampling interval in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "-e",
        "--endpoint",
        metavar="URL",
        default=DEFAULT_ENDPOINT,
        help="URL receiving one JSON POST per tick (default: %(default)s)",
    )
    parser.add_argument(
        "--no-display",
        action="store_true",
        help="do not show the terminal display, only send data",
    )
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        default=str(DEFAULT_TIMEOUT),
        help="HTTP request timeout in seconds (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--log-file", metavar="PATH", help="write log records to PATH")
    return parser


def parse_config(argv: list[str] | None = None) -> MonitorConfig:
    """Parse command-line arguments into a MonitorConfig."""
    args = build_parser().parse_args(argv)
    return MonitorConfig(
        interval=positive_float(args.interval, DEFAULT_INTERVAL, "interval"),
        endpoint=args.endpoint,
        display=not args.no_display,
        timeout=positive_float(args.timeout, DEFAULT_TIMEOUT, "timeout"),
        verbose=args.verbose,
        log_file=args.log_file,
    )


def configure_logging(verbose: bool, log_file: str | None, headless: bool) -> logging.Handler:
    """
    Install a single root log handler.

    Without a log file, records go to stderr in headless mode and are
    dropped while the terminal display owns the screen.
    """
    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(log_file)
    elif headless:
        handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler


def run_headless(monitor: ResourceMonitor) -> int:
    """Run the tick loop in the foreground until interrupted."""
    try:
        monitor.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping")
    except Exception:
        logger.exception("Could not read initial metrics")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for resmon."""
    config = parse_config(argv)
    configure_logging(config.verbose, config.log_file, headless=not config.display)

    logger.info(
        "Monitoring every %ss, sending to %s", config.interval, config.endpoint
    )

    reporter = Reporter(config.endpoint, timeout=config.timeout)
    update_queue: Queue[Snapshot] | None = Queue() if config.display else None
    monitor = ResourceMonitor(
        sampler=Sampler(),
        reporter=reporter,
        update_queue=update_queue,
        interval=config.interval,
    )

    try:
        if not config.display:
            return run_headless(monitor)

        app = ResmonApp(monitor=monitor, update_queue=update_queue, endpoint=config.endpoint)
        app.run()
        return app.return_code or 0
    finally:
        monitor.stop()


if __name__ == "__main__":
    sys.exit(main())
