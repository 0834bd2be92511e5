"""Ordered key-value stores backing the daybook server."""

from daybook.server.store.database_kv_store import DatabaseKeyValueStore
from daybook.server.store.inmemory_kv_store import InMemoryKeyValueStore
from daybook.server.store.kv_store import KeyValueStore


__all__ = [
    'DatabaseKeyValueStore',
    'InMemoryKeyValueStore',
    'KeyValueStore',
]
