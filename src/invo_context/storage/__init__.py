"""Storage backends for the context engine."""

from .base import DataStore, KeyValueStore
from .duckdb import DuckDBStorage
from .memory import InMemoryDataStore, InMemoryKeyValueStore

__all__ = [
    "DataStore",
    "KeyValueStore",
    "DuckDBStorage",
    "InMemoryDataStore",
    "InMemoryKeyValueStore",
]
