"""Phase runner -- drains one shared sample counter with a pool of workers.

A phase is a single pass over ``[0, samples)`` with one operation kind.
Workers never own a slice of the key space: each one claims the next index
from a shared :class:`WorkCounter`, so slow responses on one worker never
leave keys idle. The first failing operation sets the phase's
:class:`AbortFlag`; the other workers stop before their next operation and
the phase raises :class:`PhaseError`.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Callable

from tqdm import tqdm

from .errors import PhaseError
from .records import RecordProvider

if TYPE_CHECKING:
    from benchmarks.base import BenchmarkClient, BenchmarkClientProvider

logger = logging.getLogger(__name__)


class Operation(enum.Enum):
    WRITE = "write"
    READ = "read"
    DELETE = "delete"


class PhaseState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


# ---------------------------------------------------------------------------
# Shared per-phase state
# ---------------------------------------------------------------------------

class WorkCounter:
    """Monotonic fetch-and-increment counter handing out sample indices."""

    def __init__(self) -> None:
        self._next = 0
        self._lock = threading.Lock()

    def claim(self) -> int:
        with self._lock:
            index = self._next
            self._next += 1
        return index

    @property
    def claimed(self) -> int:
        """Number of indices handed out so far (including exhausted claims)."""
        with self._lock:
            return self._next


class AbortFlag:
    """Phase-wide stop signal. Once set it stays set."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


class ProgressCounter:
    """Percentage of the phase completed, for display only.

    ``callback(percent, previous)`` fires each time the percentage strictly
    increases; it runs under the counter's lock so callbacks observe a
    non-decreasing sequence even when several workers race.
    """

    def __init__(
        self,
        samples: int,
        callback: Callable[[int, int], None] | None = None,
    ) -> None:
        self._samples = samples
        self._callback = callback
        self._percent = 0
        self._lock = threading.Lock()

    @property
    def percent(self) -> int:
        return self._percent

    def update(self, index: int) -> int | None:
        """Advance to the percentage reached by *index*; return it if it moved."""
        if index <= 0 or self._samples <= 0:
            return None
        return self._advance(index * 100 // self._samples)

    def finish(self) -> None:
        self._advance(100)

    def _advance(self, percent: int) -> int | None:
        with self._lock:
            if percent <= self._percent:
                return None
            previous = self._percent
            self._percent = percent
            if self._callback is not None:
                self._callback(percent, previous)
        return percent


# ---------------------------------------------------------------------------
# Phase runner
# ---------------------------------------------------------------------------

class PhaseRunner:
    """Runs one phase with ``threads`` workers. Single use."""

    def __init__(
        self,
        operation: Operation,
        provider: BenchmarkClientProvider,
        samples: int,
        threads: int,
        *,
        show_progress: bool = True,
        on_progress: Callable[[int], None] | None = None,
    ) -> None:
        if threads < 1:
            raise ValueError(f"threads must be >= 1, got {threads}")
        self.operation = operation
        self.samples = samples
        self.threads = threads
        self.state = PhaseState.IDLE
        self._provider = provider
        self._show_progress = show_progress
        self._on_progress = on_progress
        self._counter = WorkCounter()
        self._abort = AbortFlag()
        self._progress: ProgressCounter | None = None
        self._error: PhaseError | None = None
        self._error_lock = threading.Lock()

    @property
    def error(self) -> PhaseError | None:
        return self._error

    def run(self) -> float:
        """Run the phase and return its wall-clock duration in seconds.

        Raises :class:`PhaseError` if any worker failed.
        """
        if self.state is not PhaseState.IDLE:
            raise RuntimeError(f"{self.operation.value} phase runner already used")
        self.state = PhaseState.RUNNING
        name = self.operation.value

        bar = tqdm(
            total=100,
            desc=f"{name:<6}",
            unit="%",
            disable=not self._show_progress,
            bar_format="{desc} {percentage:3.0f}%|{bar}| {elapsed}",
        )

        def _report(percent: int, previous: int) -> None:
            bar.update(percent - previous)
            if self._on_progress is not None:
                self._on_progress(percent)

        self._progress = ProgressCounter(self.samples, _report)

        logger.info("Start %ss benchmark", name)
        try:
            start = time.perf_counter()
            with ThreadPoolExecutor(
                max_workers=self.threads, thread_name_prefix=f"{name}-worker",
            ) as pool:
                futures = [pool.submit(self._work, n) for n in range(self.threads)]
                try:
                    for future in as_completed(futures):
                        exc = future.exception()
                        if exc is not None:
                            self._fail(None, exc)
                except BaseException:
                    # Interrupted (Ctrl-C, SystemExit): stop workers at their
                    # next claim so the pool shutdown does not drain the counter.
                    self._abort.set()
                    self.state = PhaseState.ABORTED
                    raise
            elapsed = time.perf_counter() - start

            if self._abort.is_set():
                self.state = PhaseState.ABORTED
                raise self._error from self._error.cause
            self._progress.finish()
        finally:
            bar.close()

        self.state = PhaseState.COMPLETED
        logger.info("%ss benchmark done in %.3fs", name.capitalize(), elapsed)
        return elapsed

    # ---- Workers ----------------------------------------------------------

    def _work(self, number: int) -> None:
        name = self.operation.value
        logger.debug("Thread #%d/%s starts", number, name)
        records = RecordProvider() if self.operation is Operation.WRITE else None
        try:
            client = self._provider.create_client()
        except Exception as exc:
            self._fail(None, exc)
            return

        with client:
            while True:
                sample = self._counter.claim()
                if sample >= self.samples:
                    break
                if self._abort.is_set():
                    break
                try:
                    self._execute(client, records, sample)
                except Exception as exc:
                    self._fail(sample, exc)
                    break
                self._progress.update(sample)
        logger.debug("Thread #%d/%s ends", number, name)

    def _execute(
        self,
        client: BenchmarkClient,
        records: RecordProvider | None,
        sample: int,
    ) -> None:
        if self.operation is Operation.WRITE:
            client.write(sample, records.sample())
        elif self.operation is Operation.READ:
            client.read(sample)
        else:
            client.delete(sample)

    def _fail(self, sample: int | None, exc: BaseException) -> None:
        with self._error_lock:
            if self._error is None:
                self._error = PhaseError(self.operation.value, sample, exc)
            self._abort.set()
        logger.error("%s worker failed on sample %s: %r", self.operation.value, sample, exc)
