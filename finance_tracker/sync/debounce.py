"""
Debounced Persistence

Pushes the full Year Record to storage once edits have stopped for a
quiet period.

STATE MACHINE:
    CLEAN --mutation--> PENDING_WRITE(deadline = now + debounce)
    PENDING_WRITE --mutation--> PENDING_WRITE(deadline reset)
    PENDING_WRITE --deadline--> full replace of the record --> CLEAN

WEAK DURABILITY (accepted, not a bug):
- A failed write is logged and dropped. There is no retry; the next edit
  schedules a new write carrying the latest full state.
- discard() drops a pending write without flushing it, so edits made in
  the last quiet period before leaving a year are lost.
- If a write is still in flight when the next deadline fires, both are
  sent; the later one wins on the backend.

Everything runs on one asyncio event loop: notify_mutation() must be
called from within that loop.
"""

import asyncio
from enum import Enum
from typing import Optional

from finance_tracker.audit import TrackerAuditLogger
from finance_tracker.config import get_settings
from finance_tracker.models.year_record import YearRecord
from finance_tracker.services.storage import StorageError, TrackerStorageInterface


class SyncState(str, Enum):
    """Observable saver state."""
    CLEAN = "clean"
    PENDING_WRITE = "pending_write"


class DebouncedSaver:
    """
    Cancel-and-reschedule timer around TrackerStorageInterface.replace_year.

    The record is read when the timer fires, not when it is scheduled,
    so one write always carries every edit of the window.
    """

    def __init__(
        self,
        storage: TrackerStorageInterface,
        record: YearRecord,
        debounce_seconds: Optional[float] = None,
        audit_logger: Optional[TrackerAuditLogger] = None,
    ):
        self._storage = storage
        self._record = record
        self._debounce = (
            debounce_seconds
            if debounce_seconds is not None
            else get_settings().sync.debounce_seconds
        )
        self._audit = audit_logger or TrackerAuditLogger()
        self._handle: Optional[asyncio.TimerHandle] = None
        self._deadline: Optional[float] = None
        self._in_flight: set[asyncio.Task] = set()
        self._last_error: Optional[StorageError] = None

    @property
    def state(self) -> SyncState:
        return SyncState.PENDING_WRITE if self._handle is not None else SyncState.CLEAN

    @property
    def deadline(self) -> Optional[float]:
        """Event loop time at which the pending write fires, if any."""
        return self._deadline

    @property
    def debounce_seconds(self) -> float:
        return self._debounce

    @property
    def last_error(self) -> Optional[StorageError]:
        """Error of the most recent write, cleared by the next success."""
        return self._last_error

    @property
    def writes_in_flight(self) -> int:
        return len(self._in_flight)

    def check_loop(self) -> None:
        """Raise RuntimeError unless called from within a running event loop."""
        asyncio.get_running_loop()

    def notify_mutation(self) -> None:
        """Schedule a write, or push back the one already scheduled."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._deadline = loop.time() + self._debounce
        self._handle = loop.call_at(self._deadline, self._fire)
        self._audit.log_save_scheduled(self._record.year, self._debounce)

    def discard(self) -> bool:
        """
        Cancel the pending write without sending it.

        Returns True if a write was pending.
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._deadline = None
        self._audit.log_save_discarded(self._record.year)
        return True

    async def drain(self) -> None:
        """Wait for writes that have already been sent."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    def _fire(self) -> None:
        self._handle = None
        self._deadline = None
        snapshot = self._record.model_copy(deep=True)
        task = asyncio.get_running_loop().create_task(self._push(snapshot))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _push(self, snapshot: YearRecord) -> None:
        try:
            await self._storage.replace_year(snapshot)
        except StorageError as e:
            # No retry: the next edit re-sends the full state
            self._last_error = e
            self._audit.log_save_failed(snapshot.year, str(e))
        except Exception as e:
            # Unexpected backend failure: dropped like any other failed save
            self._last_error = StorageError(f"Save failed: {e}")
            self._audit.log_save_failed(snapshot.year, f"{type(e).__name__}: {e}")
        else:
            self._last_error = None
            self._audit.log_save_completed(snapshot.year)
