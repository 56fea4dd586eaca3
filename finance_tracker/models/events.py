"""
Tracker Event Models

Every significant action on a Year Record is recorded as an event:
edits, transactions, loads, creations and background saves.
This provides:
1. Traceability of what the user changed and when
2. Debugging information when a background save is dropped
3. A record of the weak-durability windows (discarded saves)

DESIGN DECISION: Events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class TrackerEventType(str, Enum):
    """Types of events we record."""
    # Year selection
    YEAR_LOADED = "year_loaded"
    YEAR_NOT_FOUND = "year_not_found"
    YEAR_CREATED = "year_created"
    YEAR_CREATE_CONFLICT = "year_create_conflict"
    YEAR_LOAD_FAILED = "year_load_failed"
    YEAR_LEFT = "year_left"

    # Mutations
    EXPENSE_ADDED = "expense_added"
    INCOME_ADDED = "income_added"
    DAILY_EXPENSE_EDITED = "daily_expense_edited"
    WEEKLY_INCOME_EDITED = "weekly_income_edited"
    BUDGET_EDITED = "budget_edited"

    # Persistence
    SAVE_SCHEDULED = "save_scheduled"
    SAVE_COMPLETED = "save_completed"
    SAVE_FAILED = "save_failed"
    SAVE_DISCARDED = "save_discarded"

    # System events
    AUTHENTICATION_FAILED = "authentication_failed"
    SYSTEM_ERROR = "system_error"


class TrackerSeverity(str, Enum):
    """Severity level for tracker events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class TrackerEvent(BaseModel):
    """A single tracker event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: TrackerEventType
    severity: TrackerSeverity = TrackerSeverity.INFO

    # Context
    year: Optional[int] = Field(
        default=None,
        description="Year Record this event relates to"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Log entry ID, if the event concerns one"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "year": self.year,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


def _money(amount: Decimal) -> str:
    return f"{amount:.2f}"


class TrackerEventBuilder:
    """
    Helper class to build tracker events with common patterns.

    Usage:
        event = TrackerEventBuilder.expense_added(2025, entry)
        event = TrackerEventBuilder.save_failed(2025, "timeout")
    """

    @staticmethod
    def year_loaded(year: int, expense_count: int, income_count: int) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.YEAR_LOADED,
            year=year,
            description=f"Loaded tracker for {year}",
            details={
                "expense_log_size": expense_count,
                "income_log_size": income_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def year_not_found(year: int) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.YEAR_NOT_FOUND,
            year=year,
            description=f"No tracker for {year}, creation required",
        )

    @staticmethod
    def year_created(
        year: int,
        categories: list[str],
        income_sources: list[str],
    ) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.YEAR_CREATED,
            year=year,
            description=f"Created tracker for {year}",
            details={
                "categories": categories,
                "income_sources": income_sources,
            },
            is_user_action=True,
        )

    @staticmethod
    def year_create_conflict(year: int) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.YEAR_CREATE_CONFLICT,
            severity=TrackerSeverity.WARNING,
            year=year,
            description=f"A tracker for {year} already exists",
            is_user_action=True,
        )

    @staticmethod
    def year_load_failed(year: int, error_message: str) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.YEAR_LOAD_FAILED,
            severity=TrackerSeverity.ERROR,
            year=year,
            description=f"Could not load tracker for {year}",
            error_message=error_message,
        )

    @staticmethod
    def year_left(year: int, pending_save_discarded: bool) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.YEAR_LEFT,
            year=year,
            description=f"Left tracker for {year}",
            details={"pending_save_discarded": pending_save_discarded},
            is_user_action=True,
        )

    @staticmethod
    def expense_added(year: int, entry_id: str, category: str, amount: Decimal) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.EXPENSE_ADDED,
            year=year,
            entity_id=entry_id,
            description=f"Expense added: {category} - {_money(amount)}",
            details={"category": category, "amount": _money(amount)},
            is_user_action=True,
        )

    @staticmethod
    def income_added(year: int, entry_id: str, source: str, amount: Decimal) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.INCOME_ADDED,
            year=year,
            entity_id=entry_id,
            description=f"Income added: {source} - {_money(amount)}",
            details={"source": source, "amount": _money(amount)},
            is_user_action=True,
        )

    @staticmethod
    def cell_edited(
        year: int,
        event_type: TrackerEventType,
        cell: str,
        amount: Decimal,
    ) -> TrackerEvent:
        return TrackerEvent(
            event_type=event_type,
            year=year,
            description=f"Cell {cell} set to {_money(amount)}",
            details={"cell": cell, "amount": _money(amount)},
            is_user_action=True,
        )

    @staticmethod
    def save_scheduled(year: int, delay_seconds: float) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.SAVE_SCHEDULED,
            severity=TrackerSeverity.DEBUG,
            year=year,
            description=f"Save scheduled in {delay_seconds:g}s",
            details={"delay_seconds": delay_seconds},
        )

    @staticmethod
    def save_completed(year: int) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.SAVE_COMPLETED,
            year=year,
            description=f"Tracker for {year} saved",
        )

    @staticmethod
    def save_failed(year: int, error_message: str) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.SAVE_FAILED,
            severity=TrackerSeverity.ERROR,
            year=year,
            description=f"Background save for {year} dropped",
            error_message=error_message,
        )

    @staticmethod
    def save_discarded(year: int) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.SAVE_DISCARDED,
            severity=TrackerSeverity.WARNING,
            year=year,
            description=f"Pending save for {year} discarded without flushing",
        )

    @staticmethod
    def authentication_failed(error_message: str, year: Optional[int] = None) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.AUTHENTICATION_FAILED,
            severity=TrackerSeverity.ERROR,
            year=year,
            description="Credential missing, invalid or expired",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        year: Optional[int] = None,
    ) -> TrackerEvent:
        return TrackerEvent(
            event_type=TrackerEventType.SYSTEM_ERROR,
            severity=TrackerSeverity.ERROR,
            year=year,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
