"""Persistent clock settings."""

from .store import JsonSettingsStore, SettingsStoreError

__all__ = [
    "JsonSettingsStore",
    "SettingsStoreError",
]
