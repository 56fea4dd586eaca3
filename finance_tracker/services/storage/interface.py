"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Talk to the REST backend in production
2. Use in-memory storage for tests and offline work
3. Keep the session and sync logic decoupled from HTTP

The interface mirrors the backend contract exactly: fetch one year,
create one year, replace one year. There is no partial update.
"""

from abc import ABC, abstractmethod

from finance_tracker.models.events import TrackerEvent
from finance_tracker.models.year_record import YearRecord


class TrackerStorageInterface(ABC):
    """
    Abstract interface for Year Record storage.

    Records are scoped to the authenticated user; implementations
    decide how the user is identified.
    """

    @abstractmethod
    async def fetch_year(self, year: int) -> YearRecord:
        """
        Retrieve the record for a year.

        Raises:
            NotFoundError: If no record exists (triggers the creation flow)
            AuthenticationError: If the credential is missing or rejected
            ConnectionError: If the backend could not be reached
        """
        pass

    @abstractmethod
    async def create_year(self, record: YearRecord) -> YearRecord:
        """
        Store a brand-new record and return the stored version.

        Raises:
            ConflictError: If a record already exists for that year
        """
        pass

    @abstractmethod
    async def replace_year(self, record: YearRecord) -> YearRecord:
        """
        Overwrite the stored record with the full given state.

        Last write wins; there is no version check.

        Raises:
            NotFoundError: If the record was never created
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for tracker event storage.

    Events are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: TrackerEvent) -> bool:
        """Append an event. Returns True if stored."""
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[TrackerEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """No record for the requested year."""
    pass


class ConflictError(StorageError):
    """A record for that year already exists."""
    pass


class AuthenticationError(StorageError):
    """Credential missing, invalid or expired. The user must log in again."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
