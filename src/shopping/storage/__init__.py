"""Storage factory.

Provides get_storage() / set_storage() to swap implementations:
- JsonFileStore when CART_STORAGE_DIR is set
- MemoryStore otherwise (development and tests)
"""

import os

from shopping.storage.file_adapter import JsonFileStore
from shopping.storage.memory_adapter import MemoryStore
from shopping.storage.port import AUTH_KEY, CART_KEY, KeyValueStore, storage_key

__all__ = [
    "AUTH_KEY",
    "CART_KEY",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "get_storage",
    "reset_storage",
    "set_storage",
    "storage_key",
]

_current_storage: KeyValueStore | None = None


def get_storage() -> KeyValueStore:
    """Return the current store, creating the default on first use."""
    global _current_storage
    if _current_storage is None:
        directory = os.getenv("CART_STORAGE_DIR")
        _current_storage = JsonFileStore(directory) if directory else MemoryStore()
    return _current_storage


def set_storage(storage: KeyValueStore) -> None:
    """Override the active store (useful for tests)."""
    global _current_storage
    _current_storage = storage


def reset_storage() -> None:
    global _current_storage
    _current_storage = None
