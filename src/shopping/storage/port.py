"""Key-value persistence port.

Shopper state (cart, auth) is persisted as opaque JSON blobs under stable
keys, loaded once when a session starts and saved after every mutation.
Adapters decide where the blobs live.
"""

from abc import ABC, abstractmethod

CART_KEY = "cart"
AUTH_KEY = "auth"


def storage_key(session_id: str | None, key: str) -> str:
    """Namespace a stable key per shopper session (``<session_id>:<key>``)."""
    return f"{session_id}:{key}" if session_id else key


class KeyValueStore(ABC):
    """Abstract key -> JSON-object store."""

    @abstractmethod
    def load(self, key: str) -> dict | None:
        """Return the stored blob, or None when nothing is stored under ``key``."""
        ...

    @abstractmethod
    def save(self, key: str, blob: dict) -> None:
        """Replace whatever is stored under ``key``."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Forget ``key``. Deleting a missing key is a no-op."""
        ...
