"""Benchmark orchestrator -- readiness probe, prepare, then write/read/delete."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from .config import (
    READINESS_INITIAL_DELAY_S,
    READINESS_INTERVAL_S,
    READINESS_TIMEOUT_S,
)
from .errors import PrepareError, UnreachableError
from .phase import Operation, PhaseRunner
from .schema import BenchmarkConfig, BenchmarkResult

if TYPE_CHECKING:
    from benchmarks.base import BenchmarkClient, BenchmarkClientProvider

logger = logging.getLogger(__name__)


def wait_for_client(
    provider: BenchmarkClientProvider,
    timeout: float = READINESS_TIMEOUT_S,
    *,
    initial_delay: float = READINESS_INITIAL_DELAY_S,
    interval: float = READINESS_INTERVAL_S,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> BenchmarkClient:
    """Poll *provider* until it hands out a client or *timeout* elapses.

    Sleeps *initial_delay* once, then every *interval* tries
    ``create_client()``. The interval is fixed: this is a readiness probe for
    a freshly started store, not a reconnect policy.
    """
    sleep(initial_delay)
    start = clock()
    last_error: Exception | None = None
    while clock() - start < timeout:
        sleep(interval)
        logger.info("Create client connection")
        try:
            return provider.create_client()
        except Exception as exc:
            last_error = exc
            logger.warning("Backing store not yet responding: %s", exc)
    raise UnreachableError(
        f"backing store unreachable: no client after {timeout:g}s"
    ) from last_error


class Benchmark:
    """Runs the three phases of a CRUD benchmark against one provider."""

    def __init__(
        self,
        config: BenchmarkConfig,
        *,
        readiness_timeout: float = READINESS_TIMEOUT_S,
        initial_delay: float = READINESS_INITIAL_DELAY_S,
        interval: float = READINESS_INTERVAL_S,
        show_progress: bool = True,
        on_progress: Callable[[Operation, int], None] | None = None,
    ) -> None:
        self.config = config
        self.readiness_timeout = readiness_timeout
        self.initial_delay = initial_delay
        self.interval = interval
        self.show_progress = show_progress
        self.on_progress = on_progress

    def run(self, provider: BenchmarkClientProvider) -> BenchmarkResult:
        """Prepare the store once, then time writes, reads and deletes.

        Raises the first :class:`~lib.errors.BenchmarkError` encountered; no
        phase runs after a failure.
        """
        client = wait_for_client(
            provider,
            self.readiness_timeout,
            initial_delay=self.initial_delay,
            interval=self.interval,
        )
        with client:
            try:
                client.prepare()
            except Exception as exc:
                raise PrepareError(f"prepare failed: {exc!r}") from exc

        writes = self.run_phase(provider, Operation.WRITE)
        reads = self.run_phase(provider, Operation.READ)
        deletes = self.run_phase(provider, Operation.DELETE)
        return BenchmarkResult(writes=writes, reads=reads, deletes=deletes)

    def run_phase(self, provider: BenchmarkClientProvider, operation: Operation) -> float:
        on_progress = None
        if self.on_progress is not None:
            def on_progress(percent: int) -> None:
                self.on_progress(operation, percent)

        runner = PhaseRunner(
            operation,
            provider,
            self.config.samples,
            self.config.threads,
            show_progress=self.show_progress,
            on_progress=on_progress,
        )
        return runner.run()
