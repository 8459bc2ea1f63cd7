"""PostgreSQL backing store (psycopg 3)."""

from __future__ import annotations

import os

import psycopg

from lib.docker import DockerParams
from lib.errors import KeyNotFoundError
from lib.schema import Record

from .base import BenchmarkClient, BenchmarkClientProvider

POSTGRES_DOCKER_PARAMS = DockerParams(
    image="postgres",
    pre_args="-p 127.0.0.1:5432:5432 -e POSTGRES_PASSWORD=postgres",
)

DEFAULT_DSN = "host=localhost user=postgres password=postgres"

_CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS record (
        id      SERIAL PRIMARY KEY,
        text    TEXT NOT NULL,
        integer INTEGER NOT NULL
    )
"""


class PostgresClientProvider(BenchmarkClientProvider):
    name = "postgresql"

    def __init__(self, dsn: str | None = None) -> None:
        self.dsn = dsn or os.environ.get("CRUD_BENCH_POSTGRES_DSN", DEFAULT_DSN)

    def create_client(self) -> PostgresClient:
        return PostgresClient(psycopg.connect(self.dsn, autocommit=True))


class PostgresClient(BenchmarkClient):
    def __init__(self, conn: psycopg.Connection) -> None:
        self._conn = conn

    def prepare(self) -> None:
        self._conn.execute(_CREATE_TABLE)

    def write(self, key: int, record: Record) -> None:
        cur = self._conn.execute(
            "INSERT INTO record (id, text, integer) VALUES (%s, %s, %s)",
            (key, record.text, record.integer),
        )
        if cur.rowcount != 1:
            raise RuntimeError(f"insert of key {key} affected {cur.rowcount} rows")

    def read(self, key: int) -> None:
        cur = self._conn.execute(
            "SELECT id, text, integer FROM record WHERE id = %s", (key,),
        )
        if cur.fetchone() is None:
            raise KeyNotFoundError(key)

    def delete(self, key: int) -> None:
        cur = self._conn.execute("DELETE FROM record WHERE id = %s", (key,))
        if cur.rowcount != 1:
            raise KeyNotFoundError(key)

    def close(self) -> None:
        self._conn.close()
