from abc import ABC, abstractmethod

from daybook.types import Item


class KeyValueStore(ABC):
    """Ordered key-value store interface.

    Maps byte keys to byte values and iterates them in ascending byte order.
    Implementations own their locking: `put` is atomic per key and `scan`
    reflects a single point-in-time view of the store taken when it starts.
    Failures surface as `StoreError`.
    """

    async def initialize(self) -> None:
        """Opens the underlying storage. Failure here is fatal to startup."""

    async def close(self) -> None:
        """Releases the underlying storage."""

    @abstractmethod
    async def put(self, key: bytes, value: bytes) -> None:
        """Inserts or replaces the value stored under `key`."""

    @abstractmethod
    async def get(self, key: bytes) -> bytes | None:
        """Returns the value stored under `key`, or None."""

    @abstractmethod
    async def scan(self, prefix: bytes) -> list[Item]:
        """Returns every item whose key starts with `prefix`, in key order."""
