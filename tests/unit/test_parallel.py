"""
Unit tests for the thread-pool helpers.
"""

import threading

import pytest

from prank import parallel
from prank.parallel import chunked, get_optimal_workers, run_parallel, should_use_parallel


class TestWorkerHeuristics:
    """Tests for worker count selection."""

    @pytest.mark.parametrize("cpus,expected", [(1, 1), (2, 1), (3, 2), (4, 2), (8, 6), (16, 14)])
    def test_optimal_workers(self, monkeypatch, cpus, expected):
        """Test the CPU-based heuristic."""
        monkeypatch.setattr(parallel, "get_cpu_count", lambda: cpus)
        assert get_optimal_workers() == expected

    def test_max_workers_caps(self, monkeypatch):
        """Test that max_workers caps the heuristic."""
        monkeypatch.setattr(parallel, "get_cpu_count", lambda: 16)
        assert get_optimal_workers(max_workers=3) == 3

    def test_small_workloads_stay_serial(self, monkeypatch):
        """Test that too few items disable parallelism."""
        monkeypatch.setattr(parallel, "get_cpu_count", lambda: 8)
        assert not should_use_parallel(3)
        assert should_use_parallel(100)
        assert not should_use_parallel(100, max_workers=1)


class TestRunParallel:
    """Tests for run_parallel."""

    def test_preserves_order(self):
        """Test that results come back in input order."""
        items = list(range(200))
        assert run_parallel(lambda x: x * x, items, max_workers=4) == [x * x for x in items]

    def test_empty(self):
        """Test that an empty input gives an empty result."""
        assert run_parallel(lambda x: x, []) == []

    def test_force_serial_uses_calling_thread(self):
        """Test that force_serial runs everything on the caller's thread."""
        caller = threading.get_ident()
        threads = run_parallel(lambda _: threading.get_ident(), range(50), force_serial=True)
        assert set(threads) == {caller}

    def test_exceptions_propagate(self, monkeypatch):
        """Test that a failing item raises in the caller."""
        monkeypatch.setattr(parallel, "get_cpu_count", lambda: 8)

        def fail_on_seven(x):
            if x == 7:
                raise RuntimeError("boom")
            return x

        with pytest.raises(RuntimeError, match="boom"):
            run_parallel(fail_on_seven, range(100))


class TestChunked:
    """Tests for chunked."""

    def test_chunks(self):
        """Test splitting into consecutive slices."""
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_range_chunks(self):
        """Test that ranges split into ranges."""
        chunks = list(chunked(range(7), 3))
        assert [list(c) for c in chunks] == [[0, 1, 2], [3, 4, 5], [6]]

    def test_invalid_size(self):
        """Test that a non-positive size is rejected."""
        with pytest.raises(ValueError):
            list(chunked([1, 2], 0))
