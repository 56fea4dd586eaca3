"""
Tracker Audit Logger

DESIGN DECISION: Every significant action on a Year Record is logged.
This provides:
1. Traceability of edits and transactions
2. Visibility into background saves that were dropped
3. An optional persisted history (via AuditStorageInterface)

The audit logger:
- Is synchronous: mutations run to completion on the event loop and
  must not wait on logging
- Gracefully handles sink failures (never crashes the tracker)
"""

from decimal import Decimal
from typing import Optional

import structlog

from finance_tracker.models.events import (
    TrackerEvent,
    TrackerEventBuilder,
    TrackerEventType,
)
from finance_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class TrackerAuditLogger:
    """
    Central event logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit sink, if one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Sink for persisting events.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: TrackerEvent) -> bool:
        """
        Log a tracker event.

        Always logs locally. Persists to the sink if available.

        Returns True if the sink write succeeded (or no sink configured).
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity == "error":
            self._logger.error("tracker_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("tracker_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("tracker_event", **log_dict)
        else:
            self._logger.info("tracker_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    # Year selection

    def log_year_loaded(self, year: int, expense_count: int, income_count: int) -> None:
        self.log(TrackerEventBuilder.year_loaded(year, expense_count, income_count))

    def log_year_not_found(self, year: int) -> None:
        self.log(TrackerEventBuilder.year_not_found(year))

    def log_year_created(
        self,
        year: int,
        categories: list[str],
        income_sources: list[str],
    ) -> None:
        self.log(TrackerEventBuilder.year_created(year, categories, income_sources))

    def log_year_create_conflict(self, year: int) -> None:
        self.log(TrackerEventBuilder.year_create_conflict(year))

    def log_year_load_failed(self, year: int, error_message: str) -> None:
        self.log(TrackerEventBuilder.year_load_failed(year, error_message))

    def log_year_left(self, year: int, pending_save_discarded: bool) -> None:
        self.log(TrackerEventBuilder.year_left(year, pending_save_discarded))

    # Mutations

    def log_expense_added(
        self,
        year: int,
        entry_id: str,
        category: str,
        amount: Decimal,
    ) -> None:
        self.log(TrackerEventBuilder.expense_added(year, entry_id, category, amount))

    def log_income_added(
        self,
        year: int,
        entry_id: str,
        source: str,
        amount: Decimal,
    ) -> None:
        self.log(TrackerEventBuilder.income_added(year, entry_id, source, amount))

    def log_daily_expense_edited(self, year: int, cell: str, amount: Decimal) -> None:
        self.log(TrackerEventBuilder.cell_edited(
            year, TrackerEventType.DAILY_EXPENSE_EDITED, cell, amount
        ))

    def log_weekly_income_edited(self, year: int, cell: str, amount: Decimal) -> None:
        self.log(TrackerEventBuilder.cell_edited(
            year, TrackerEventType.WEEKLY_INCOME_EDITED, cell, amount
        ))

    def log_budget_edited(self, year: int, category: str, amount: Decimal) -> None:
        self.log(TrackerEventBuilder.cell_edited(
            year, TrackerEventType.BUDGET_EDITED, category, amount
        ))

    # Persistence

    def log_save_scheduled(self, year: int, delay_seconds: float) -> None:
        self.log(TrackerEventBuilder.save_scheduled(year, delay_seconds))

    def log_save_completed(self, year: int) -> None:
        self.log(TrackerEventBuilder.save_completed(year))

    def log_save_failed(self, year: int, error_message: str) -> None:
        self.log(TrackerEventBuilder.save_failed(year, error_message))

    def log_save_discarded(self, year: int) -> None:
        self.log(TrackerEventBuilder.save_discarded(year))

    # Errors

    def log_authentication_failed(self, error_message: str, year: Optional[int] = None) -> None:
        self.log(TrackerEventBuilder.authentication_failed(error_message, year))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        year: Optional[int] = None,
    ) -> None:
        self.log(TrackerEventBuilder.system_error(error_type, error_message, details, year))
