#!/usr/bin/env python3
"""CLI entry point for CRUD benchmarks.

Usage:
    python run.py --database dry --samples 100000 --threads 8
    python run.py --database postgresql --samples 100000 --threads 16
    python run.py --database surrealdb-rocksdb --image surrealdb/surrealdb:nightly -s 10000 -t 4
"""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import ExitStack

from benchmarks import DATABASES, get_backends
from lib.benchmark import Benchmark
from lib.config import DEFAULT_SAMPLES, DEFAULT_THREADS, READINESS_TIMEOUT_S
from lib.docker import DockerContainer
from lib.errors import BenchmarkError, DockerError
from lib.schema import BenchmarkConfig

logger = logging.getLogger("crud_bench")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="crud-bench",
        description="Measure write, read and delete throughput of a database",
    )
    parser.add_argument(
        "-i", "--image", type=str, default=None,
        help="Docker image overriding the database's default image",
    )
    parser.add_argument(
        "-d", "--database", required=True, choices=DATABASES,
        help="Database to benchmark",
    )
    parser.add_argument(
        "-s", "--samples", type=int, default=DEFAULT_SAMPLES,
        help=f"Number of samples (default: {DEFAULT_SAMPLES})",
    )
    parser.add_argument(
        "-t", "--threads", type=int, default=DEFAULT_THREADS,
        help=f"Number of concurrent threads (default: {DEFAULT_THREADS})",
    )
    parser.add_argument(
        "--timeout", type=float, default=READINESS_TIMEOUT_S,
        help=f"Seconds to wait for the database to accept connections "
             f"(default: {READINESS_TIMEOUT_S:g})",
    )
    parser.add_argument(
        "--no-progress", action="store_true",
        help="Hide the per-phase progress bars",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)
    if args.samples < 0:
        parser.error("--samples must be >= 0")
    if args.threads < 1:
        parser.error("--threads must be >= 1")
    return args


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    logger.info("Benchmark started!")

    backend = get_backends().get(args.database)
    if backend is None:
        print(
            f"ERROR: the driver for {args.database} is not installed "
            f"(pip install 'crud-bench[{args.database.split('-')[0]}]')",
            file=sys.stderr,
        )
        sys.exit(1)

    config = BenchmarkConfig(
        threads=args.threads,
        samples=args.samples,
        database=args.database,
        image=args.image,
    )
    benchmark = Benchmark(
        config,
        readiness_timeout=args.timeout,
        show_progress=not args.no_progress,
    )

    with ExitStack() as stack:
        container = None
        if backend.docker is not None:
            try:
                container = stack.enter_context(
                    DockerContainer.from_params(backend.docker, args.image),
                )
            except DockerError as e:
                print(f"\nERROR starting container: {e}", file=sys.stderr)
                sys.exit(1)

        try:
            result = benchmark.run(backend.provider())
        except BenchmarkError as e:
            if container is not None:
                try:
                    print(container.logs())
                except DockerError as log_error:
                    logger.error("Could not fetch container logs: %s", log_error)
            print(f"\nERROR running {args.database} benchmark: {e}", file=sys.stderr)
            sys.exit(1)

        image = container.image if container is not None else None
        print(
            f"Benchmark result for {args.database} on docker {image} "
            f"- Samples: {config.samples} - Threads: {config.threads}"
        )
        print(result)


if __name__ == "__main__":
    main()
