import logging

from collections.abc import Iterator

from daybook.server.store.kv_store import KeyValueStore
from daybook.types import Item
from daybook.utils.errors import UnknownGroupError
from daybook.utils.keys import KeyScheme


logger = logging.getLogger(__name__)


class PrefixScanner:
    """A cursor over every store entry sharing one key prefix.

    Each call re-reads the store, so results always reflect the writes that
    completed before the call.
    """

    def __init__(self, store: KeyValueStore, prefix: bytes) -> None:
        self.store = store
        self.prefix = prefix

    async def items(self) -> list[Item]:
        """Returns the matching items in ascending key order."""
        return await self.store.scan(self.prefix)

    async def keys(self) -> list[bytes]:
        return [item.key for item in await self.items()]

    async def values(self) -> list[bytes]:
        return [item.value for item in await self.items()]

    async def count(self) -> int:
        return len(await self.items())

    async def item_mapping(self) -> dict[bytes, bytes]:
        """Returns the matching items as a key to value mapping."""
        return {item.key: item.value for item in await self.items()}


class GroupIndex:
    """One `PrefixScanner` per known group, bound once at construction.

    Both the write path (through the key scheme) and the read path (through
    this index) take their prefixes from the same `KeyScheme`.
    """

    def __init__(self, store: KeyValueStore, key_scheme: KeyScheme) -> None:
        self.key_scheme = key_scheme
        self._scanners: dict[str, PrefixScanner] = {
            group: PrefixScanner(store, key_scheme.group_prefix(group))
            for group in key_scheme.groups
        }
        logger.debug(f'GroupIndex bound scanners for {list(self._scanners)}')

    @property
    def groups(self) -> list[str]:
        return list(self._scanners)

    def __getitem__(self, group: str) -> PrefixScanner:
        """Returns the scanner bound to `group`.

        Raises:
            UnknownGroupError: If `group` is not a known group.
        """
        try:
            return self._scanners[group]
        except KeyError:
            raise UnknownGroupError(group) from None

    def __contains__(self, group: object) -> bool:
        return group in self._scanners

    def __iter__(self) -> Iterator[str]:
        return iter(self._scanners)

    def __len__(self) -> int:
        return len(self._scanners)
