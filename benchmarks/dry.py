"""In-memory reference store, used for dry runs and tests."""

from __future__ import annotations

from dataclasses import replace

from lib.errors import KeyNotFoundError
from lib.rwlock import RWLock
from lib.schema import Record

from .base import BenchmarkClient, BenchmarkClientProvider


class DryDatabase:
    """A dict shared by all clients of a provider, behind a reader/writer lock."""

    def __init__(self) -> None:
        self._records: dict[int, Record] = {}
        self._lock = RWLock()

    def insert(self, key: int, record: Record) -> None:
        # Copy: the caller's record buffer is reused for the next sample.
        stored = replace(record)
        with self._lock.write():
            self._records[key] = stored

    def get(self, key: int) -> Record | None:
        with self._lock.read():
            return self._records.get(key)

    def remove(self, key: int) -> Record | None:
        with self._lock.write():
            return self._records.pop(key, None)

    def keys(self) -> set[int]:
        with self._lock.read():
            return set(self._records)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._records)


class DryClientProvider(BenchmarkClientProvider):
    name = "dry"

    def __init__(self, database: DryDatabase | None = None) -> None:
        self.database = database if database is not None else DryDatabase()

    def create_client(self) -> DryClient:
        return DryClient(self.database)


class DryClient(BenchmarkClient):
    def __init__(self, database: DryDatabase) -> None:
        self.database = database

    def prepare(self) -> None:
        pass

    def write(self, key: int, record: Record) -> None:
        self.database.insert(key, record)

    def read(self, key: int) -> None:
        if self.database.get(key) is None:
            raise KeyNotFoundError(key)

    def delete(self, key: int) -> None:
        if self.database.remove(key) is None:
            raise KeyNotFoundError(key)
