"""Construction of sortable store keys for grouped tasks.

A key is laid out as::

    b'/' + group + b'/' + created_at (8 bytes) + stamp (8 bytes)

``created_at`` is the number of microseconds since the Unix epoch and
``stamp`` a strictly increasing disambiguator, both big-endian unsigned.
Fixed-width big-endian fields make byte order equal chronological order,
and the delimiter on both sides of the group keeps one group's prefix from
matching another group whose label starts with the same characters.
"""

import logging
import threading
import time

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from daybook.utils.errors import UnknownGroupError


logger = logging.getLogger(__name__)

DELIMITER = b'/'
_FIELD_WIDTH = 8
_MAX_FIELD = 2 ** (8 * _FIELD_WIDTH) - 1
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def to_micros(created_at: datetime) -> int:
    """Returns microseconds since the Unix epoch; naive values are read as UTC."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    delta = created_at - _EPOCH
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    if micros < 0:
        raise ValueError(f'Timestamp {created_at.isoformat()} predates the epoch')
    return micros


def prefix_upper_bound(prefix: bytes) -> bytes | None:
    """Returns the smallest byte string greater than every key starting with `prefix`.

    Returns None when no such bound exists (empty or all-0xff prefix), in
    which case a scan must run to the end of the keyspace.
    """
    trimmed = prefix.rstrip(b'\xff')
    if not trimmed:
        return None
    return trimmed[:-1] + bytes([trimmed[-1] + 1])


class MonotonicStamp:
    """Thread-safe source of strictly increasing 64-bit stamps.

    Stamps follow wall-clock nanoseconds but never repeat or go backwards,
    so two keys built in the same microsecond still differ and keep their
    creation order. Seeding from the clock keeps stamps unique across
    process restarts against a durable store.
    """

    def __init__(self, clock=time.time_ns) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._last = max(self._clock(), self._last + 1)
            return self._last


class KeyScheme:
    """Maps groups and creation times onto byte-sortable keys."""

    def __init__(self, groups: Iterable[str]) -> None:
        """Initializes the KeyScheme.

        Args:
            groups: The known group identifiers.

        Raises:
            ValueError: If a group is empty, contains the delimiter or is
                listed twice.
        """
        self._prefixes: dict[str, bytes] = {}
        for group in groups:
            encoded = group.encode('utf-8')
            if not encoded or DELIMITER in encoded:
                raise ValueError(
                    f"Group '{group}' must be non-empty and must not contain "
                    f"'{DELIMITER.decode()}'"
                )
            if group in self._prefixes:
                raise ValueError(f"Group '{group}' is listed more than once")
            self._prefixes[group] = DELIMITER + encoded + DELIMITER
        logger.debug(f'KeyScheme initialized for groups {list(self._prefixes)}')

    @property
    def groups(self) -> list[str]:
        return list(self._prefixes)

    def __contains__(self, group: object) -> bool:
        return group in self._prefixes

    def group_prefix(self, group: str) -> bytes:
        """Returns the prefix shared by every key of `group`.

        Raises:
            UnknownGroupError: If `group` is not a known group.
        """
        try:
            return self._prefixes[group]
        except KeyError:
            raise UnknownGroupError(group) from None

    def make_key(self, group: str, created_at: datetime, stamp: int = 0) -> bytes:
        """Builds the store key for a task of `group` created at `created_at`.

        Args:
            group: A known group identifier.
            created_at: The task's creation time.
            stamp: A disambiguator ordering keys with equal timestamps.

        Raises:
            UnknownGroupError: If `group` is not a known group.
            ValueError: If the timestamp predates the epoch or the stamp does
                not fit in 64 unsigned bits.
        """
        prefix = self.group_prefix(group)
        micros = to_micros(created_at)
        if not 0 <= stamp <= _MAX_FIELD:
            raise ValueError(f'Stamp {stamp} is out of range')
        return (
            prefix
            + micros.to_bytes(_FIELD_WIDTH, 'big')
            + stamp.to_bytes(_FIELD_WIDTH, 'big')
        )

    def split_key(self, key: bytes) -> tuple[str, datetime, int]:
        """Splits a key built by `make_key` back into its parts.

        Raises:
            ValueError: If `key` does not have the expected layout.
        """
        width = 2 * _FIELD_WIDTH
        head, tail = key[:-width], key[-width:]
        if len(tail) != width or not (
            head.startswith(DELIMITER) and head.endswith(DELIMITER) and len(head) > 2
        ):
            raise ValueError(f'Malformed key {key!r}')
        group = head[1:-1].decode('utf-8')
        micros = int.from_bytes(tail[:_FIELD_WIDTH], 'big')
        stamp = int.from_bytes(tail[_FIELD_WIDTH:], 'big')
        created_at = _EPOCH + timedelta(microseconds=micros)
        return group, created_at, stamp
