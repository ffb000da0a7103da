"""Key-value storage backends."""

from ._protocol import KeyValueStore
from .memory import MemoryKeyValueStore
from .sqlite import SQLiteKeyValueStore

__all__ = ["KeyValueStore", "MemoryKeyValueStore", "SQLiteKeyValueStore"]
