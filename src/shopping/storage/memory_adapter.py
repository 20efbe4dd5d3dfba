"""In-process key-value store for development and tests."""

import copy

from shopping.storage.port import KeyValueStore


class MemoryStore(KeyValueStore):
    """Dictionary-backed store. Blobs are deep-copied in and out."""

    def __init__(self) -> None:
        self._blobs: dict[str, dict] = {}

    def load(self, key: str) -> dict | None:
        blob = self._blobs.get(key)
        return copy.deepcopy(blob) if blob is not None else None

    def save(self, key: str, blob: dict) -> None:
        self._blobs[key] = copy.deepcopy(blob)

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._blobs)
