"""Base classes every backing store implements."""

from __future__ import annotations

from abc import ABC, abstractmethod

from lib.schema import Record


class BenchmarkClient(ABC):
    """One connection to a backing store, owned by a single worker.

    ``read`` and ``delete`` raise :class:`~lib.errors.KeyNotFoundError` when
    the key is missing. A successful operation must be visible to every other
    client created by the same provider.
    """

    @abstractmethod
    def prepare(self) -> None:
        """Idempotent schema/state setup, called once before the first phase."""

    @abstractmethod
    def write(self, key: int, record: Record) -> None:
        """Store *record* under *key*."""

    @abstractmethod
    def read(self, key: int) -> None:
        """Fetch the record stored under *key*."""

    @abstractmethod
    def delete(self, key: int) -> None:
        """Remove the record stored under *key*."""

    def close(self) -> None:
        """Release the connection. Override if the client holds one."""

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class BenchmarkClientProvider(ABC):
    """Factory handing out one client per worker.

    ``create_client`` is called concurrently from every worker thread and
    must be safe to do so. It raises when the store is unreachable.
    """

    name: str = ""

    @abstractmethod
    def create_client(self) -> BenchmarkClient:
        """Open a new client."""
