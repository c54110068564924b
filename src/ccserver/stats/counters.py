"""
=============================================================================
SHARED STATISTICS COUNTERS
=============================================================================

One Counters instance lives for the whole process. Every session writes
to it, the reporter reads it.

=============================================================================
TWO HALVES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          Counters                                    │
    ├──────────────────────────────────┬──────────────────────────────────┤
    │  total (cumulative)              │  window (since last report)      │
    │  ────────────────────            │  ──────────────────────────      │
    │  never reset                     │  zeroed by the reporter          │
    │                                  │                                  │
    │  clients                         │  clients                         │
    │  requests                        │  requests                        │
    │  add_ops / sub_ops               │  add_ops / sub_ops               │
    │  mul_ops / div_ops               │  mul_ops / div_ops               │
    │  error_ops                       │  error_ops                       │
    │  sum_of_results                  │  sum_of_results                  │
    └──────────────────────────────────┴──────────────────────────────────┘

Every update goes to BOTH halves in one step, so the window can never
hold more than the total did at the same instant.

=============================================================================
THREAD SAFETY
=============================================================================

Python has no atomic integers, and "x += 1" on a shared attribute is a
read-modify-write that can lose updates between threads. A single lock
guards the whole object. Critical sections are a handful of integer
additions, so contention stays negligible even with many sessions.

Because snapshot and window reset happen under the same lock, a report
and its reset see exactly the same values: no increment can fall between
"read the window" and "zero the window".

=============================================================================
"""

import threading
import time
from dataclasses import dataclass, field, fields, replace


@dataclass
class CounterSet:
    """
    One set of statistics fields.

    Used for both halves of Counters and for the per-request deltas that
    the request processor returns.
    """
    clients: int = 0
    requests: int = 0
    add_ops: int = 0
    sub_ops: int = 0
    mul_ops: int = 0
    div_ops: int = 0
    error_ops: int = 0
    sum_of_results: int = 0

    def add(self, other: "CounterSet") -> None:
        """Add every field of other into this set."""
        for name in FIELD_NAMES:
            setattr(self, name, getattr(self, name) + getattr(other, name))

    def copy(self) -> "CounterSet":
        return replace(self)

    def is_zero(self) -> bool:
        return all(getattr(self, name) == 0 for name in FIELD_NAMES)


FIELD_NAMES = tuple(f.name for f in fields(CounterSet))


@dataclass(frozen=True)
class StatsSnapshot:
    """
    Both halves of Counters copied at one instant.

    Attributes:
        total: Cumulative values since startup.
        window: Values since the previous window reset.
        taken_at: Unix timestamp of the copy.
    """
    total: CounterSet
    window: CounterSet
    taken_at: float = field(default_factory=time.time)


class Counters:
    """
    Process-wide statistics store.

    Usage:
        counters = Counters()
        counters.record_client()
        counters.apply(result.deltas)

        snapshot = counters.snapshot_and_reset_window()
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._total = CounterSet()
        self._window = CounterSet()

    def apply(self, deltas: CounterSet) -> None:
        """
        Apply a set of increments to both halves.

        Args:
            deltas: Increments, typically from process_request().
        """
        with self._lock:
            self._total.add(deltas)
            self._window.add(deltas)

    def record_client(self) -> None:
        """Count one newly accepted connection."""
        self.apply(CounterSet(clients=1))

    def snapshot(self) -> StatsSnapshot:
        """Copy both halves without resetting anything."""
        with self._lock:
            return StatsSnapshot(total=self._total.copy(), window=self._window.copy())

    def snapshot_and_reset_window(self) -> StatsSnapshot:
        """
        Copy both halves and zero the window in one locked step.

        Returns:
            The values as they were just before the reset.
        """
        with self._lock:
            snapshot = StatsSnapshot(total=self._total.copy(), window=self._window)
            self._window = CounterSet()
        return snapshot

    def reset_window(self) -> None:
        """Zero the window, leaving the cumulative totals untouched."""
        with self._lock:
            self._window = CounterSet()

    @property
    def total(self) -> CounterSet:
        """Copy of the cumulative half."""
        with self._lock:
            return self._total.copy()

    @property
    def window(self) -> CounterSet:
        """Copy of the windowed half."""
        with self._lock:
            return self._window.copy()
