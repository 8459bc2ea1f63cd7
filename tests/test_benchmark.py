"""Tests for the readiness probe and the three-phase orchestrator."""

from __future__ import annotations

import threading
import time
import unittest

from benchmarks.base import BenchmarkClient, BenchmarkClientProvider
from benchmarks.dry import DryClient, DryClientProvider
from lib.benchmark import Benchmark, wait_for_client
from lib.errors import (
    BenchmarkError,
    KeyNotFoundError,
    PhaseError,
    PrepareError,
    UnreachableError,
)
from lib.phase import Operation
from lib.schema import BenchmarkConfig, BenchmarkResult


class FakeClock:
    """Deterministic clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FlakyProvider(BenchmarkClientProvider):
    """Refuses the first *failures* connections, then hands out dry clients."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.attempts = 0
        self._dry = DryClientProvider()

    def create_client(self) -> BenchmarkClient:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ConnectionRefusedError("not listening yet")
        return self._dry.create_client()


class CountingClient(DryClient):
    def __init__(self, provider: CountingProvider) -> None:
        super().__init__(provider.database)
        self.provider = provider

    def _count(self, op: str) -> None:
        with self.provider.lock:
            self.provider.calls[op] = self.provider.calls.get(op, 0) + 1

    def prepare(self) -> None:
        self._count("prepare")
        if self.provider.fail_prepare:
            raise RuntimeError("schema creation failed")

    def write(self, key, record):
        self._count("write")
        if key == self.provider.fail_write_on:
            raise RuntimeError("disk full")
        super().write(key, record)

    def read(self, key):
        self._count("read")
        super().read(key)

    def delete(self, key):
        self._count("delete")
        super().delete(key)


class CountingProvider(DryClientProvider):
    def __init__(self, fail_prepare: bool = False, fail_write_on: int | None = None) -> None:
        super().__init__()
        self.fail_prepare = fail_prepare
        self.fail_write_on = fail_write_on
        self.lock = threading.Lock()
        self.calls: dict[str, int] = {}

    def create_client(self) -> CountingClient:
        return CountingClient(self)


def make_benchmark(samples: int, threads: int, **kwargs) -> Benchmark:
    kwargs.setdefault("readiness_timeout", 5.0)
    kwargs.setdefault("initial_delay", 0)
    kwargs.setdefault("interval", 0)
    return Benchmark(
        BenchmarkConfig(threads=threads, samples=samples),
        show_progress=False,
        **kwargs,
    )


# ======================================================================
# Readiness waiter
# ======================================================================

class TestWaitForClient(unittest.TestCase):
    def test_ready_store_returns_first_client(self):
        clock = FakeClock()
        client = wait_for_client(
            FlakyProvider(0), 60, initial_delay=2, interval=2,
            sleep=clock.sleep, clock=clock,
        )
        self.assertIsInstance(client, DryClient)
        self.assertEqual(clock.sleeps, [2, 2])

    def test_retries_at_fixed_interval_until_ready(self):
        clock = FakeClock()
        provider = FlakyProvider(3)
        wait_for_client(provider, 60, initial_delay=2, interval=2,
                        sleep=clock.sleep, clock=clock)
        self.assertEqual(provider.attempts, 4)
        self.assertEqual(clock.sleeps, [2, 2, 2, 2, 2])

    def test_always_failing_store_is_unreachable(self):
        clock = FakeClock()
        provider = FlakyProvider(10**9)
        with self.assertRaises(UnreachableError) as ctx:
            wait_for_client(provider, 60, initial_delay=2, interval=2,
                            sleep=clock.sleep, clock=clock)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionRefusedError)
        # 60s window probed every 2s
        self.assertEqual(provider.attempts, 30)
        self.assertLessEqual(clock.now, 2 + 60 + 2)

    def test_unreachable_within_real_time_bound(self):
        start = time.monotonic()
        with self.assertRaises(UnreachableError):
            wait_for_client(FlakyProvider(10**9), 0.2, initial_delay=0, interval=0.02)
        self.assertLess(time.monotonic() - start, 2.0)


# ======================================================================
# Orchestrator
# ======================================================================

class TestBenchmark(unittest.TestCase):
    def test_dry_run_100_samples_4_threads(self):
        provider = DryClientProvider()
        bench = make_benchmark(100, 4)

        result = bench.run(provider)

        self.assertIsInstance(result, BenchmarkResult)
        for duration in (result.writes, result.reads, result.deletes):
            self.assertGreaterEqual(duration, 0.0)
        self.assertEqual(len(provider.database), 0)

        # The store is empty now: reading again fails on a missing key.
        with self.assertRaises(PhaseError) as ctx:
            bench.run_phase(provider, Operation.READ)
        self.assertEqual(ctx.exception.phase, "read")
        self.assertIsInstance(ctx.exception.cause, KeyNotFoundError)

    def test_writes_are_visible_across_clients(self):
        provider = DryClientProvider()
        bench = make_benchmark(100, 4)
        bench.run_phase(provider, Operation.WRITE)
        self.assertEqual(provider.database.keys(), set(range(100)))
        for key in range(100):
            record = provider.database.get(key)
            self.assertEqual(len(record.text), 50)
            self.assertEqual(record.integer, 0)

    def test_prepare_called_exactly_once(self):
        provider = CountingProvider()
        make_benchmark(200, 8).run(provider)
        self.assertEqual(provider.calls["prepare"], 1)
        self.assertEqual(provider.calls["write"], 200)
        self.assertEqual(provider.calls["read"], 200)
        self.assertEqual(provider.calls["delete"], 200)

    def test_zero_samples_runs_no_operation(self):
        provider = CountingProvider()
        result = make_benchmark(0, 4).run(provider)
        self.assertEqual(provider.calls, {"prepare": 1})
        self.assertLess(result.writes + result.reads + result.deletes, 1.0)

    def test_prepare_failure_runs_no_phase(self):
        provider = CountingProvider(fail_prepare=True)
        with self.assertRaises(PrepareError) as ctx:
            make_benchmark(10, 2).run(provider)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertNotIn("write", provider.calls)

    def test_write_failure_skips_later_phases(self):
        provider = CountingProvider(fail_write_on=7)
        with self.assertRaises(PhaseError) as ctx:
            make_benchmark(50, 2).run(provider)
        self.assertEqual(ctx.exception.phase, "write")
        self.assertNotIn("read", provider.calls)
        self.assertNotIn("delete", provider.calls)

    def test_unreachable_store_fails_before_any_phase(self):
        provider = FlakyProvider(10**9)
        bench = make_benchmark(10, 2, readiness_timeout=0.1, interval=0.02)
        with self.assertRaises(UnreachableError):
            bench.run(provider)
        self.assertEqual(len(provider._dry.database), 0)

    def test_all_errors_are_benchmark_errors(self):
        for exc in (UnreachableError, PrepareError, PhaseError, KeyNotFoundError):
            self.assertTrue(issubclass(exc, BenchmarkError))

    def test_progress_hook_per_phase(self):
        seen: dict[Operation, list[int]] = {op: [] for op in Operation}
        bench = make_benchmark(
            300, 3, on_progress=lambda op, pct: seen[op].append(pct),
        )
        bench.run(DryClientProvider())
        for op in Operation:
            self.assertEqual(seen[op][-1], 100, op)
            self.assertEqual(seen[op], sorted(set(seen[op])), op)


class TestBenchmarkConfig(unittest.TestCase):
    def test_rejects_invalid_values(self):
        with self.assertRaises(ValueError):
            BenchmarkConfig(threads=0, samples=10)
        with self.assertRaises(ValueError):
            BenchmarkConfig(threads=1, samples=-1)

    def test_result_rendering(self):
        result = BenchmarkResult(writes=1.5, reads=0.0025, deletes=0.000004)
        self.assertEqual(
            str(result),
            "Writes: 1.500s\nReads: 2.500ms\nDeletes: 4.000µs",
        )
        self.assertEqual(result.to_dict()["writes_s"], 1.5)


if __name__ == "__main__":
    unittest.main()
