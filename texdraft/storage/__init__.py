"""Durable local storage: key vault, preferences and generation history."""

from texdraft.storage.backends import JsonFileStore, KeyValueStore, MemoryStore, StorageKey
from texdraft.storage.history import HistoryStore, format_timestamp
from texdraft.storage.vault import ApiKeyVault, Theme, ThemePreference

__all__ = [
    "ApiKeyVault",
    "HistoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "StorageKey",
    "Theme",
    "ThemePreference",
    "format_timestamp",
]
