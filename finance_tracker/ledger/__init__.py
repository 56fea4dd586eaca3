"""Ledger package: calendar helpers, keyed ledger store and transaction logs."""

from finance_tracker.ledger.dates import (
    MONTHS,
    WEEKS_PER_MONTH,
    days_in_month,
    days_of_week,
    week_of_month,
    weeks_in_month,
)
from finance_tracker.ledger.store import (
    ExpenseLedger,
    IncomeLedger,
    InvalidAmountError,
    LedgerError,
    LedgerKeyError,
    LedgerStore,
    to_amount,
)
from finance_tracker.ledger.transaction_log import TransactionLog

__all__ = [
    # Calendar
    "MONTHS",
    "WEEKS_PER_MONTH",
    "days_in_month",
    "days_of_week",
    "week_of_month",
    "weeks_in_month",
    # Store
    "ExpenseLedger",
    "IncomeLedger",
    "InvalidAmountError",
    "LedgerError",
    "LedgerKeyError",
    "LedgerStore",
    "to_amount",
    # Log
    "TransactionLog",
]
