"""
Main Orchestrator for Finance Tracker

Ties storage, sessions and the saver together and defines the
year selection flow:
1. Open   -> fetch the year; 404 means "create it", not an error
2. Create -> store an empty record with categories and income sources
3. Work   -> mutate the returned TrackerSession
4. Leave  -> discard any pending write and go back to year selection

ERROR POLICY:
- NotFound on open: returns None so the caller shows the creation form
- Conflict on create: raised, the user picks another year or opens it
- Authentication failures: raised, the user must log in again
- Connection failures on open/create: raised, the view offers a retry
- Failures of background saves never reach this layer (see sync)
"""

from typing import Optional, Union

from finance_tracker.audit import TrackerAuditLogger
from finance_tracker.config import Settings, get_settings, split_names
from finance_tracker.models.year_record import YearRecord
from finance_tracker.services.storage import (
    AuditStorageInterface,
    AuthenticationError,
    ConflictError,
    HttpTrackerStorage,
    InMemoryTrackerStorage,
    NotFoundError,
    StorageError,
    TrackerStorageInterface,
)
from finance_tracker.session import TrackerSession
from finance_tracker.sync import DebouncedSaver

NamesInput = Union[str, list[str], None]


def _names(value: NamesInput, default: list[str]) -> list[str]:
    """Names from a list or a comma-separated string; None means default."""
    if value is None:
        return list(default)
    if isinstance(value, str):
        return split_names(value)
    return [name.strip() for name in value if name and name.strip()]


class TrackerApp:
    """
    Entry point of the tracker core.

    Holds at most one open session: opening or creating a year
    leaves the previous one first.
    """

    def __init__(
        self,
        storage: TrackerStorageInterface,
        audit_logger: Optional[TrackerAuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or TrackerAuditLogger()
        self._settings = settings or get_settings()
        self._session: Optional[TrackerSession] = None

    @property
    def session(self) -> Optional[TrackerSession]:
        """The currently open year, if any."""
        return self._session

    def _start_session(self, record: YearRecord) -> TrackerSession:
        saver = None
        sync_settings = self._settings.sync
        if sync_settings.enabled:
            saver = DebouncedSaver(
                self._storage,
                record,
                debounce_seconds=sync_settings.debounce_seconds,
                audit_logger=self._audit,
            )
        self._session = TrackerSession(record, saver=saver, audit_logger=self._audit)
        return self._session

    async def open_year(self, year: int) -> Optional[TrackerSession]:
        """
        Load an existing year.

        Returns None when no record exists for the year.
        """
        self.leave_year()
        try:
            record = await self._storage.fetch_year(year)
        except NotFoundError:
            self._audit.log_year_not_found(year)
            return None
        except AuthenticationError as e:
            self._audit.log_authentication_failed(str(e), year)
            raise
        except StorageError as e:
            self._audit.log_year_load_failed(year, str(e))
            raise

        self._audit.log_year_loaded(year, len(record.expense_log), len(record.income_log))
        return self._start_session(record)

    async def create_year(
        self,
        year: int,
        categories: NamesInput = None,
        income_sources: NamesInput = None,
    ) -> TrackerSession:
        """
        Create a year with empty ledgers and logs.

        Category and income source names may be given as lists or as
        comma-separated strings; None uses the configured defaults.

        Raises:
            ConflictError: If the year already exists
        """
        app_settings = self._settings.app
        record = YearRecord.new(
            year,
            _names(categories, app_settings.default_categories_list),
            _names(income_sources, app_settings.default_income_sources_list),
        )

        self.leave_year()
        try:
            stored = await self._storage.create_year(record)
        except ConflictError:
            self._audit.log_year_create_conflict(year)
            raise
        except AuthenticationError as e:
            self._audit.log_authentication_failed(str(e), year)
            raise
        except StorageError as e:
            self._audit.log_error("create_failed", str(e), year=year)
            raise

        self._audit.log_year_created(year, stored.categories, stored.income_sources)
        return self._start_session(stored)

    def leave_year(self) -> bool:
        """
        Close the open session, if any, without flushing its pending write.

        Returns True if a pending write was discarded.
        """
        if self._session is None:
            return False
        session = self._session
        self._session = None
        discarded = session.close()
        self._audit.log_year_left(session.year, discarded)
        return discarded


def create_tracker_app(
    token: Optional[str] = None,
    use_backend: bool = True,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> TrackerApp:
    """
    Factory function to create the application components.

    Args:
        token: Bearer token; defaults to TRACKER_API_TOKEN.
        use_backend: Talk to the REST backend. Set to False to keep
                    everything in memory (offline use, tests).
        audit_storage: Optional sink for tracker events.
    """
    audit_logger = TrackerAuditLogger(audit_storage)
    if use_backend:
        storage: TrackerStorageInterface = HttpTrackerStorage(token=token)
    else:
        storage = InMemoryTrackerStorage()
    return TrackerApp(storage, audit_logger=audit_logger)
