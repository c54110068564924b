"""
=============================================================================
PERIODIC STATISTICS REPORTER
=============================================================================

A background thread that prints what the server has been doing.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Reporter Loop                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Wait report_interval seconds (or until shutdown)               │
    │          │                                                           │
    │          ├── Shutdown signaled → exit                               │
    │          │                                                           │
    │          └── Timer elapsed → continue                               │
    │                                                                      │
    │   2. Snapshot counters and zero the window (one locked step)        │
    │                                                                      │
    │   3. Print the report                                               │
    │          │                                                           │
    │          └── Go back to step 1                                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The report goes to standard output, not to the log: it is the server's
user-facing output, like the startup banner.

=============================================================================
"""

import logging
import sys
import threading
from typing import Optional, TextIO

from .counters import Counters, CounterSet, StatsSnapshot


logger = logging.getLogger(__name__)


def _format_interval(seconds: float) -> str:
    if float(seconds).is_integer():
        return f"{int(seconds)} seconds"
    return f"{seconds:g} seconds"


def _format_section(values: CounterSet, clients_label: str, requests_label: str) -> list[str]:
    return [
        f"- {clients_label}: {values.clients}",
        f"- {requests_label}: {values.requests}",
        f"- ADD operations: {values.add_ops}",
        f"- SUB operations: {values.sub_ops}",
        f"- MUL operations: {values.mul_ops}",
        f"- DIV operations: {values.div_ops}",
        f"- Error operations: {values.error_ops}",
        f"- Sum of computed values: {values.sum_of_results}",
    ]


def format_report(snapshot: StatsSnapshot, interval: float = 10.0) -> str:
    """
    Render a snapshot as the human-readable report.

    Cumulative values come first, then the window, each field in the
    same order.

    Args:
        snapshot: Values to render.
        interval: Window length, used in the section title.

    Returns:
        Multi-line report text (no trailing newline).
    """
    lines = ["", "=== Statistics Report ===", "Total since start:"]
    lines += _format_section(snapshot.total, "Connected clients", "Total requests")
    lines += ["", f"Last {_format_interval(interval)}:"]
    lines += _format_section(snapshot.window, "New clients", "Requests")
    return "\n".join(lines)


class StatisticsReporter(threading.Thread):
    """
    Thread that reports and resets the windowed counters on a timer.

    The shutdown event doubles as the timer: Event.wait(interval) sleeps
    for the interval but returns immediately once the event is set.

    Usage:
        stop = threading.Event()
        reporter = StatisticsReporter(counters, stop, interval=10.0)
        reporter.start()
        ...
        stop.set()
        reporter.join()
    """

    def __init__(
        self,
        counters: Counters,
        shutdown_event: threading.Event,
        interval: float = 10.0,
        stream: Optional[TextIO] = None,
    ):
        """
        Initialize the reporter.

        Args:
            counters: The shared statistics store.
            shutdown_event: Set to stop the loop.
            interval: Seconds between reports.
            stream: Where reports are written. Defaults to sys.stdout,
                    resolved at write time so pytest capture works.
        """
        super().__init__(name="StatisticsReporter", daemon=True)

        self.counters = counters
        self.interval = interval
        self.stream = stream
        self._shutdown = shutdown_event

        self.reports_emitted = 0

    def run(self):
        logger.debug(f"Statistics reporter started (every {self.interval}s)")

        while not self._shutdown.wait(self.interval):
            self.report_once()

        logger.debug("Statistics reporter stopped")

    def report_once(self) -> StatsSnapshot:
        """
        Emit one report and reset the window.

        Returns:
            The snapshot that was reported.
        """
        snapshot = self.counters.snapshot_and_reset_window()

        stream = self.stream or sys.stdout
        print(format_report(snapshot, self.interval), file=stream, flush=True)

        self.reports_emitted += 1
        return snapshot
