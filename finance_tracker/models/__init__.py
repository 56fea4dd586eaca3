"""
Data Models Package

This package contains all Pydantic models used by the tracker.
The Year Record is the only persisted model; totals are derived.
"""

from finance_tracker.models.year_record import (
    Amount,
    DayKey,
    ExpenseEntry,
    IncomeEntry,
    WeekKey,
    YearRecord,
)
from finance_tracker.models.totals import (
    DerivedTotals,
    MonthlyTotals,
)
from finance_tracker.models.events import (
    TrackerEvent,
    TrackerEventBuilder,
    TrackerEventType,
    TrackerSeverity,
)

__all__ = [
    # Year Record models
    "Amount",
    "DayKey",
    "ExpenseEntry",
    "IncomeEntry",
    "WeekKey",
    "YearRecord",
    # Derived totals
    "DerivedTotals",
    "MonthlyTotals",
    # Event models
    "TrackerEvent",
    "TrackerEventBuilder",
    "TrackerEventType",
    "TrackerSeverity",
]
