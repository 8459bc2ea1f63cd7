"""Backing-store registry -- lazy imports so missing optional drivers don't crash the CLI."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lib.docker import DockerParams

    from .base import BenchmarkClientProvider


@dataclass(frozen=True)
class Backend:
    """A selectable database: its client provider and, if any, its container."""

    name: str
    provider: type[BenchmarkClientProvider]
    docker: DockerParams | None = None


# name -> (module, provider class, docker params constant or None)
_BACKENDS = {
    "dry": ("benchmarks.dry", "DryClientProvider", None),
    "surrealdb": ("benchmarks.surreal", "SurrealDBClientProvider", None),
    "surrealdb-memory": (
        "benchmarks.surreal", "SurrealDBClientProvider", "SURREAL_MEMORY_DOCKER_PARAMS",
    ),
    "surrealdb-rocksdb": (
        "benchmarks.surreal", "SurrealDBClientProvider", "SURREAL_ROCKSDB_DOCKER_PARAMS",
    ),
    "surrealdb-speedb": (
        "benchmarks.surreal", "SurrealDBClientProvider", "SURREAL_SPEEDB_DOCKER_PARAMS",
    ),
    "mongodb": ("benchmarks.mongodb", "MongoDBClientProvider", "MONGODB_DOCKER_PARAMS"),
    "postgresql": ("benchmarks.postgres", "PostgresClientProvider", "POSTGRES_DOCKER_PARAMS"),
}

# Every database the CLI knows about, installed driver or not.
DATABASES = tuple(_BACKENDS)

# Driver packages that justify silently skipping a backend.
_OPTIONAL_DRIVERS = {"psycopg", "pymongo", "surrealdb"}


def get_backends() -> dict[str, Backend]:
    """Return available backends, skipping those whose driver is not installed."""
    registry: dict[str, Backend] = {}

    for name, (module, cls_name, docker_attr) in _BACKENDS.items():
        try:
            mod = __import__(module, fromlist=[cls_name])
        except ImportError as e:
            # Only suppress a missing optional driver; re-report internal
            # import errors (typo, broken code).
            missing = getattr(e, "name", None)
            if not (missing and missing.split(".")[0] in _OPTIONAL_DRIVERS):
                print(f"Warning: failed to load {name} backend: {e}", file=sys.stderr)
            continue
        docker = getattr(mod, docker_attr) if docker_attr else None
        registry[name] = Backend(name=name, provider=getattr(mod, cls_name), docker=docker)

    return registry
