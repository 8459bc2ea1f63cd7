"""Configuration and result types for a benchmark run."""

from __future__ import annotations

from dataclasses import dataclass, asdict


@dataclass
class Record:
    text: str = ""
    integer: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BenchmarkConfig:
    threads: int            # concurrent workers per phase
    samples: int            # keys in [0, samples)
    database: str = "dry"   # registry name of the backing store
    image: str | None = None

    def __post_init__(self):
        if self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")
        if self.samples < 0:
            raise ValueError(f"samples must be >= 0, got {self.samples}")


@dataclass
class BenchmarkResult:
    """Wall-clock duration of each phase, in seconds."""

    writes: float
    reads: float
    deletes: float

    def to_dict(self) -> dict:
        return {
            "writes_s": round(self.writes, 6),
            "reads_s": round(self.reads, 6),
            "deletes_s": round(self.deletes, 6),
        }

    def __str__(self) -> str:
        return (
            f"Writes: {format_duration(self.writes)}\n"
            f"Reads: {format_duration(self.reads)}\n"
            f"Deletes: {format_duration(self.deletes)}"
        )


def format_duration(seconds: float) -> str:
    """Render a duration with a unit that keeps it readable."""
    if seconds >= 1:
        return f"{seconds:.3f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds * 1e6:.3f}µs"
