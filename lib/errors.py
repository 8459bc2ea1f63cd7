"""Exception hierarchy shared by the benchmark engine and the store clients."""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for every error that ends a benchmark run."""


class UnreachableError(BenchmarkError):
    """The backing store did not accept a client before the readiness deadline."""


class PrepareError(BenchmarkError):
    """The one-time schema/state preparation failed."""


class PhaseError(BenchmarkError):
    """An operation failed during a phase; the whole phase is discarded.

    Carries the phase name, the sample index being serviced when the failure
    happened, and the original exception (also chained as ``__cause__``).
    """

    def __init__(self, phase: str, sample: int | None, cause: BaseException):
        self.phase = phase
        self.sample = sample
        self.cause = cause
        where = f"on sample {sample}" if sample is not None else "outside an operation"
        super().__init__(f"{phase} phase failed {where}: {cause!r}")


class KeyNotFoundError(BenchmarkError):
    """A read or delete targeted a key that is not present in the store."""

    def __init__(self, key: int):
        self.key = key
        super().__init__(f"key {key} not found")


class DockerError(Exception):
    """A docker command exited with a non-zero status."""
