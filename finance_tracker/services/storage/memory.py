"""
In-Memory Storage Implementation

Same contract as the REST backend, kept in process memory:
one document per (user, year), create-once, replace-on-write.

Documents are stored in their wire form, so a caller holding a
YearRecord can never mutate the stored copy behind our back.
Several storages may share one `documents` dict to model several
users of the same backend.
"""

from collections import deque
from typing import Any, Optional

from finance_tracker.models.events import TrackerEvent
from finance_tracker.models.year_record import YearRecord
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    TrackerStorageInterface,
)


class InMemoryTrackerStorage(TrackerStorageInterface):
    """Dict-backed tracker storage scoped to one user."""

    def __init__(
        self,
        user_id: Optional[str] = "local",
        documents: Optional[dict[tuple[str, int], dict[str, Any]]] = None,
    ):
        self._user_id = user_id
        self._documents = documents if documents is not None else {}

    def _key(self, year: int) -> tuple[str, int]:
        if not self._user_id:
            raise AuthenticationError("Authorization token is required.")
        return (self._user_id, year)

    async def fetch_year(self, year: int) -> YearRecord:
        key = self._key(year)
        if key not in self._documents:
            raise NotFoundError("No tracker data found for this year.")
        return YearRecord.from_wire(self._documents[key])

    async def create_year(self, record: YearRecord) -> YearRecord:
        key = self._key(record.year)
        if key in self._documents:
            raise ConflictError(
                f"A tracker for {record.year} already exists for this user."
            )
        self._documents[key] = record.to_wire()
        return YearRecord.from_wire(self._documents[key])

    async def replace_year(self, record: YearRecord) -> YearRecord:
        key = self._key(record.year)
        if key not in self._documents:
            raise NotFoundError("Tracker not found to update.")
        self._documents[key] = record.to_wire()
        return YearRecord.from_wire(self._documents[key])


class InMemoryAuditStorage(AuditStorageInterface):
    """Bounded event history, newest events kept."""

    def __init__(self, max_events: int = 1000):
        self._events: deque[TrackerEvent] = deque(maxlen=max_events)

    def append_event(self, event: TrackerEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[TrackerEvent]:
        return list(reversed(self._events))[:limit]
