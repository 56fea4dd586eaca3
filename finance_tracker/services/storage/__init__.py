"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The REST backend is the production store; the in-memory store backs
tests and offline use.
"""

from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    AuthenticationError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    StorageError,
    TrackerStorageInterface,
)
from finance_tracker.services.storage.http_api import HttpTrackerStorage
from finance_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryTrackerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "TrackerStorageInterface",
    # Exceptions
    "AuthenticationError",
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "HttpTrackerStorage",
    "InMemoryAuditStorage",
    "InMemoryTrackerStorage",
]
