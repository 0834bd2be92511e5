import asyncio
import bisect
import logging

from daybook.server.store.kv_store import KeyValueStore
from daybook.types import Item


logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory implementation of KeyValueStore.

    Keys are kept in a sorted list beside a dict of values, so a prefix scan
    is a binary search followed by a contiguous slice.
    """

    def __init__(self) -> None:
        logger.debug('Initializing InMemoryKeyValueStore')
        self.keys: list[bytes] = []
        self.values: dict[bytes, bytes] = {}
        self.lock = asyncio.Lock()

    async def put(self, key: bytes, value: bytes) -> None:
        async with self.lock:
            if key not in self.values:
                bisect.insort(self.keys, key)
            self.values[key] = value
            logger.debug('Stored %d bytes under key %r.', len(value), key)

    async def get(self, key: bytes) -> bytes | None:
        async with self.lock:
            return self.values.get(key)

    async def scan(self, prefix: bytes) -> list[Item]:
        async with self.lock:
            start = bisect.bisect_left(self.keys, prefix)
            items = []
            for key in self.keys[start:]:
                if not key.startswith(prefix):
                    break
                items.append(Item(key=key, value=self.values[key]))
        logger.debug('Prefix %r matched %d item(s).', prefix, len(items))
        return items
