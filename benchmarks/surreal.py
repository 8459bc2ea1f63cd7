"""SurrealDB backing store, reached over WebSocket with the surrealdb SDK."""

from __future__ import annotations

import os

from surrealdb import RecordID, Surreal

from lib.docker import DockerParams
from lib.errors import KeyNotFoundError
from lib.schema import Record

from .base import BenchmarkClient, BenchmarkClientProvider

_SURREAL_IMAGE = "surrealdb/surrealdb:v1.5.4"
_SURREAL_PORTS = "-p 127.0.0.1:8000:8000"
_SURREAL_START = "start --auth --user root --pass root"

SURREAL_MEMORY_DOCKER_PARAMS = DockerParams(
    image=_SURREAL_IMAGE,
    pre_args=_SURREAL_PORTS,
    post_args=f"{_SURREAL_START} memory",
)

SURREAL_ROCKSDB_DOCKER_PARAMS = DockerParams(
    image=_SURREAL_IMAGE,
    pre_args=_SURREAL_PORTS,
    post_args=f"{_SURREAL_START} rocksdb://tmp/sur-bench.db",
)

SURREAL_SPEEDB_DOCKER_PARAMS = DockerParams(
    image=_SURREAL_IMAGE,
    pre_args=_SURREAL_PORTS,
    post_args=f"{_SURREAL_START} speedb://tmp/sur-bench.db",
)

DEFAULT_URL = "ws://127.0.0.1:8000"
TABLE = "record"


class SurrealDBClientProvider(BenchmarkClientProvider):
    name = "surrealdb"

    def __init__(
        self,
        url: str | None = None,
        username: str = "root",
        password: str = "root",
        namespace: str = "test",
        database: str = "test",
    ) -> None:
        self.url = url or os.environ.get("CRUD_BENCH_SURREALDB_URL", DEFAULT_URL)
        self.username = username
        self.password = password
        self.namespace = namespace
        self.database = database

    def create_client(self) -> SurrealDBClient:
        db = Surreal(self.url)
        try:
            # signin opens the socket, so an unreachable server fails here
            db.signin({"username": self.username, "password": self.password})
            db.use(self.namespace, self.database)
        except Exception:
            db.close()
            raise
        return SurrealDBClient(db)


class SurrealDBClient(BenchmarkClient):
    def __init__(self, db) -> None:
        self._db = db

    def prepare(self) -> None:
        # Schemaless: tables are created on first write.
        pass

    def write(self, key: int, record: Record) -> None:
        created = self._db.create(RecordID(TABLE, key), record.to_dict())
        if not created:
            raise RuntimeError(f"create of key {key} returned nothing")

    def read(self, key: int) -> None:
        if not self._db.select(RecordID(TABLE, key)):
            raise KeyNotFoundError(key)

    def delete(self, key: int) -> None:
        if not self._db.delete(RecordID(TABLE, key)):
            raise KeyNotFoundError(key)

    def close(self) -> None:
        self._db.close()
