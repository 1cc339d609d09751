"""Local device storage infrastructure package."""

from .key_value_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from .local_design_storage import LocalDesignStorage

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LocalDesignStorage",
]
