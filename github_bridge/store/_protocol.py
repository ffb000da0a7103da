"""Key-value store protocol definition."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for the key-value store backing subscriptions and tokens.

    Values are opaque bytes. There is no locking or versioning: two callers
    doing read-modify-write on the same key can overwrite each other, and the
    last write wins.

    Example:
        >>> store = MemoryKeyValueStore()
        >>> await store.set("user1_githubtoken", b"ghp_abc")
        >>> await store.get("user1_githubtoken")
        b'ghp_abc'
    """

    async def get(self, key: str) -> bytes | None:
        """Return the value stored under key, or None if absent."""
        ...

    async def set(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous value."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is a no-op."""
        ...

    async def open(self) -> None:
        """Acquire any underlying connection."""
        ...

    async def close(self) -> None:
        """Release any underlying connection."""
        ...
