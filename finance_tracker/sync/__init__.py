"""Persistence sync package."""

from finance_tracker.sync.debounce import DebouncedSaver, SyncState

__all__ = ["DebouncedSaver", "SyncState"]
