"""
Tracker Session

The explicitly owned state of one open year: the Year Record, its
ledgers and logs, the cached rollups and the debounced saver.

All user actions go through the mutation API below. Each mutation:
1. Validates its input against the record's domain (raises LedgerError)
   and, with a saver, that it runs inside the event loop (RuntimeError)
2. Applies the change in memory, to completion
3. Invalidates the cached totals
4. Notifies the saver, which (re)schedules a full-state write

Constructing a session never schedules a write: only genuine edits do.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional, Union

from finance_tracker.aggregation import aggregate
from finance_tracker.audit import TrackerAuditLogger
from finance_tracker.ledger import (
    ExpenseLedger,
    IncomeLedger,
    InvalidAmountError,
    LedgerKeyError,
    to_amount,
)
from finance_tracker.ledger.store import AmountInput
from finance_tracker.models.totals import DerivedTotals
from finance_tracker.models.year_record import (
    DayKey,
    ExpenseEntry,
    IncomeEntry,
    WeekKey,
    YearRecord,
)
from finance_tracker.sync import DebouncedSaver

DateInput = Union[dt.date, str]


def parse_date(value: DateInput) -> dt.date:
    """
    Accept a date or an ISO "YYYY-MM-DD" string.

    Dates that do not exist, such as 2025-02-29, are rejected rather
    than clamped to the month's last day.
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise LedgerKeyError(f"Not a valid calendar date: {value!r}")


def _transaction_amount(value: AmountInput) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidAmountError("A transaction needs an amount")
    return to_amount(value)


class TrackerSession:
    """One open Year Record and everything derived from it."""

    def __init__(
        self,
        record: YearRecord,
        saver: Optional[DebouncedSaver] = None,
        audit_logger: Optional[TrackerAuditLogger] = None,
    ):
        self._record = record
        self._expenses = ExpenseLedger(record)
        self._incomes = IncomeLedger(record)
        self._saver = saver
        self._audit = audit_logger or TrackerAuditLogger()
        self._totals: Optional[DerivedTotals] = None

    @property
    def record(self) -> YearRecord:
        return self._record

    @property
    def year(self) -> int:
        return self._record.year

    @property
    def saver(self) -> Optional[DebouncedSaver]:
        return self._saver

    @property
    def totals(self) -> DerivedTotals:
        """Rollups of the current state, recomputed after each mutation."""
        if self._totals is None:
            self._totals = aggregate(self._record)
        return self._totals

    def _check_sync(self) -> None:
        """Fail before any change if the saver cannot schedule a write."""
        if self._saver is not None:
            self._saver.check_loop()

    def _mutated(self) -> None:
        self._totals = None
        if self._saver is not None:
            self._saver.notify_mutation()

    # -------------------------------------------------------------------------
    # Transactions (log + ledger dual write)
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        amount: AmountInput,
        category: str,
        on: DateInput,
        item: str = "",
    ) -> ExpenseEntry:
        """Log an expense and add it to that day's category cell."""
        self._check_sync()
        entry = ExpenseEntry(
            amount=_transaction_amount(amount),
            category=category,
            date=parse_date(on),
            item=item,
        )
        stamped = self._expenses.record(entry)
        self._audit.log_expense_added(
            self.year, stamped.id, stamped.category, stamped.amount
        )
        self._mutated()
        return stamped

    def add_income(
        self,
        amount: AmountInput,
        source: str,
        on: DateInput,
        invoice: Optional[str] = None,
    ) -> IncomeEntry:
        """Log an income and add it to the cell of that date's week."""
        self._check_sync()
        entry = IncomeEntry(
            amount=_transaction_amount(amount),
            source=source,
            date=parse_date(on),
            invoice=invoice or None,
        )
        stamped = self._incomes.record(entry)
        self._audit.log_income_added(
            self.year, stamped.id, stamped.source, stamped.amount
        )
        self._mutated()
        return stamped

    # -------------------------------------------------------------------------
    # Manual cell edits (overwrite)
    # -------------------------------------------------------------------------

    def set_daily_expense(
        self,
        month: int,
        day: int,
        category: str,
        amount: AmountInput,
    ) -> Decimal:
        """Overwrite one day's spending for a category. Blank clears the cell."""
        self._check_sync()
        key = DayKey(month, day, category)
        value = self._expenses.set(key, amount)
        self._audit.log_daily_expense_edited(self.year, key.encode(), value)
        self._mutated()
        return value

    def set_weekly_income(self, month: int, week: int, amount: AmountInput) -> Decimal:
        """Overwrite one week's income. Blank clears the cell."""
        self._check_sync()
        key = WeekKey(month, week)
        value = self._incomes.set(key, amount)
        self._audit.log_weekly_income_edited(self.year, key.encode(), value)
        self._mutated()
        return value

    def set_budget(self, category: str, amount: AmountInput) -> Decimal:
        """Set the planned monthly amount of a category. Blank clears it."""
        self._check_sync()
        if category not in self._record.categories:
            raise LedgerKeyError(f"Unknown expense category: {category!r}")
        value = to_amount(amount)
        if value == 0:
            self._record.budgets.pop(category, None)
        else:
            self._record.budgets[category] = value
        self._audit.log_budget_edited(self.year, category, value)
        self._mutated()
        return value

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def daily_expense(self, month: int, day: int, category: str) -> Decimal:
        return self._expenses.get(DayKey(month, day, category))

    def weekly_income(self, month: int, week: int) -> Decimal:
        return self._incomes.get(WeekKey(month, week))

    def budget(self, category: str) -> Decimal:
        return self._record.budgets.get(category, Decimal("0"))

    def expense_log_view(self) -> list[ExpenseEntry]:
        """Expense log, most recent first."""
        return self._expenses.log.newest_first()

    def income_log_view(self) -> list[IncomeEntry]:
        """Income log, most recent first."""
        return self._incomes.log.newest_first()

    def close(self) -> bool:
        """
        Stop syncing this session. A pending write is discarded, not flushed.
        Later edits to this session stay local.

        Returns True if a pending write was dropped.
        """
        if self._saver is None:
            return False
        saver, self._saver = self._saver, None
        return saver.discard()
