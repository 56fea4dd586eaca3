"""Services package."""

from finance_tracker.services.storage import (
    AuditStorageInterface,
    AuthenticationError,
    ConflictError,
    ConnectionError,
    HttpTrackerStorage,
    InMemoryAuditStorage,
    InMemoryTrackerStorage,
    NotFoundError,
    StorageError,
    TrackerStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "AuthenticationError",
    "ConflictError",
    "ConnectionError",
    "HttpTrackerStorage",
    "InMemoryAuditStorage",
    "InMemoryTrackerStorage",
    "NotFoundError",
    "StorageError",
    "TrackerStorageInterface",
]
