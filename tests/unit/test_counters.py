"""
Unit tests for the shared statistics counters.
"""

import threading

from ccserver.stats import Counters, CounterSet, FIELD_NAMES


class TestCounterSet:
    """Tests for CounterSet."""

    def test_fields(self):
        """Test the counter field names and order."""
        assert FIELD_NAMES == (
            "clients",
            "requests",
            "add_ops",
            "sub_ops",
            "mul_ops",
            "div_ops",
            "error_ops",
            "sum_of_results",
        )

    def test_add(self):
        """Test adding one counter set into another."""
        values = CounterSet(requests=1, add_ops=1, sum_of_results=5)
        values.add(CounterSet(requests=2, error_ops=2, sum_of_results=-7))

        assert values == CounterSet(requests=3, add_ops=1, error_ops=2, sum_of_results=-2)

    def test_copy_is_independent(self):
        """Test that a copy does not share state with the original."""
        original = CounterSet(requests=1)
        copy = original.copy()
        copy.requests = 99

        assert original.requests == 1

    def test_is_zero(self):
        """Test detecting an all-zero counter set."""
        assert CounterSet().is_zero()
        assert not CounterSet(sum_of_results=-1).is_zero()


class TestCounters:
    """Tests for Counters."""

    def test_apply_updates_both_halves(self):
        """Test that apply() updates totals and window together."""
        counters = Counters()
        counters.apply(CounterSet(requests=1, mul_ops=1, sum_of_results=56))

        assert counters.total == CounterSet(requests=1, mul_ops=1, sum_of_results=56)
        assert counters.window == counters.total

    def test_record_client(self):
        """Test counting new clients."""
        counters = Counters()
        counters.record_client()
        counters.record_client()

        assert counters.total.clients == 2
        assert counters.window.clients == 2

    def test_snapshot_and_reset_window(self):
        """Test taking a snapshot and clearing the window in one step."""
        counters = Counters()
        counters.apply(CounterSet(requests=3, add_ops=3, sum_of_results=30))

        snapshot = counters.snapshot_and_reset_window()

        assert snapshot.window.requests == 3
        assert snapshot.total.requests == 3
        assert counters.window.is_zero()
        assert counters.total.requests == 3

    def test_snapshot_does_not_reset(self):
        """Test that a plain snapshot leaves the window alone."""
        counters = Counters()
        counters.apply(CounterSet(requests=1, error_ops=1))

        counters.snapshot()

        assert counters.window.requests == 1

    def test_snapshot_is_detached(self):
        """Test that later updates do not change a snapshot."""
        counters = Counters()
        snapshot = counters.snapshot()
        counters.apply(CounterSet(requests=1))

        assert snapshot.total.requests == 0

    def test_reset_window_keeps_totals(self):
        """Test that a window reset leaves totals untouched."""
        counters = Counters()
        counters.apply(CounterSet(requests=4, div_ops=4, sum_of_results=8))
        counters.reset_window()

        assert counters.window.is_zero()
        assert counters.total == CounterSet(requests=4, div_ops=4, sum_of_results=8)

    def test_window_never_exceeds_total(self):
        """Test that the window stays at or below the total."""
        counters = Counters()
        counters.apply(CounterSet(requests=5))
        counters.reset_window()
        counters.apply(CounterSet(requests=2))

        snapshot = counters.snapshot()
        assert snapshot.window.requests <= snapshot.total.requests


class TestCountersConcurrency:
    """Concurrent updates must not lose increments."""

    def test_parallel_apply(self):
        """Test that parallel updates lose no increments."""
        counters = Counters()
        threads_count = 16
        per_thread = 500

        def worker():
            for _ in range(per_thread):
                counters.apply(CounterSet(requests=1, add_ops=1, sum_of_results=2))

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        expected = threads_count * per_thread
        assert counters.total.requests == expected
        assert counters.total.add_ops == expected
        assert counters.total.sum_of_results == 2 * expected
        assert counters.window == counters.total

    def test_resets_during_updates_lose_nothing(self):
        """Test that window resets racing with updates drop nothing."""
        counters = Counters()
        per_thread = 2000
        reported = []
        done = threading.Event()

        def worker():
            for _ in range(per_thread):
                counters.apply(CounterSet(requests=1))

        def reporter():
            while not done.is_set():
                reported.append(counters.snapshot_and_reset_window().window.requests)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        report_thread = threading.Thread(target=reporter)
        report_thread.start()
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        done.set()
        report_thread.join()

        reported.append(counters.snapshot_and_reset_window().window.requests)

        assert counters.total.requests == 4 * per_thread
        assert sum(reported) == 4 * per_thread
