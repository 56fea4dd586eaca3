"""
Keyed Ledger Store

Sparse mapping from composite keys to non-negative amounts:
- ExpenseLedger: (month, day, category) -> amount spent that day
- IncomeLedger:  (month, week) -> amount received that week

Three operations: point read (missing key reads as 0), point write
(manual cell edit) and point increment (transaction-driven).

DESIGN DECISION: Adding a transaction is a dual write. record() validates
everything up front, then appends to the log and increments the cell.
Nothing between the append and the increment can fail, so a cell always
equals its manually edited baseline plus the transactions mapped to it.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Generic, Optional, TypeVar, Union

from finance_tracker.ledger.dates import (
    WEEKS_PER_MONTH,
    days_in_month,
    week_of_month,
)
from finance_tracker.ledger.transaction_log import TransactionLog
from finance_tracker.models.year_record import (
    DayKey,
    ExpenseEntry,
    IncomeEntry,
    WeekKey,
    YearRecord,
)

ZERO = Decimal("0")

K = TypeVar("K", DayKey, WeekKey)

AmountInput = Union[Decimal, int, float, str, None]


class LedgerError(ValueError):
    """Base exception for ledger mutations."""
    pass


class LedgerKeyError(LedgerError):
    """Key outside the record's domain (month, day, week or category)."""
    pass


class InvalidAmountError(LedgerError):
    """Amount is negative or not a number."""
    pass


def to_amount(value: AmountInput) -> Decimal:
    """
    Convert user input to an amount.

    None and blank strings read as 0, like a cleared cell.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return ZERO
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidAmountError(f"Not a number: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Not a finite amount: {value!r}")
    if amount < 0:
        raise InvalidAmountError(f"Amounts cannot be negative: {value!r}")
    return amount


class LedgerStore(Generic[K]):
    """Point read/write/increment over a sparse cell map."""

    def __init__(self, cells: dict[K, Decimal]):
        self._cells = cells

    def _validate_key(self, key: K) -> None:
        """Hook for subclasses. Raise LedgerKeyError for invalid keys."""

    def get(self, key: K) -> Decimal:
        return self._cells.get(key, ZERO)

    def set(self, key: K, amount: AmountInput) -> Decimal:
        """Overwrite a cell. Writing 0 removes the key."""
        self._validate_key(key)
        value = to_amount(amount)
        if value == ZERO:
            self._cells.pop(key, None)
        else:
            self._cells[key] = value
        return value

    def increment(self, key: K, amount: AmountInput) -> Decimal:
        """Add to a cell and return its new value."""
        self._validate_key(key)
        value = self.get(key) + to_amount(amount)
        if value != ZERO:
            self._cells[key] = value
        return value


class _RecordLedger(LedgerStore[K]):
    """Ledger bound to a Year Record, validating keys against its domain."""

    def __init__(self, record: YearRecord, cells: dict[K, Decimal]):
        super().__init__(cells)
        self._record = record

    def _check_month(self, month: int) -> None:
        if not 0 <= month <= 11:
            raise LedgerKeyError(f"Month index must be 0-11, got {month}")

    def _check_date(self, on: dt.date) -> None:
        if on.year != self._record.year:
            raise LedgerKeyError(
                f"Date {on.isoformat()} is outside the {self._record.year} tracker"
            )


class ExpenseLedger(_RecordLedger[DayKey]):
    """Daily expenses of a Year Record, plus the expense log."""

    def __init__(self, record: YearRecord):
        super().__init__(record, record.daily_expenses)
        self.log: TransactionLog[ExpenseEntry] = TransactionLog(record.expense_log)

    def _validate_key(self, key: DayKey) -> None:
        self._check_month(key.month)
        last_day = days_in_month(self._record.year, key.month)
        if not 1 <= key.day <= last_day:
            raise LedgerKeyError(
                f"Day must be 1-{last_day} for month {key.month} of "
                f"{self._record.year}, got {key.day}"
            )
        if key.category not in self._record.categories:
            raise LedgerKeyError(f"Unknown expense category: {key.category!r}")

    def key_for(self, on: dt.date, category: str) -> DayKey:
        self._check_date(on)
        key = DayKey(on.month - 1, on.day, category)
        self._validate_key(key)
        return key

    def record(self, entry: ExpenseEntry) -> ExpenseEntry:
        """Append an expense and add its amount to the matching day cell."""
        key = self.key_for(entry.date, entry.category)
        stamped = self.log.append(entry)
        self.increment(key, stamped.amount)
        return stamped


class IncomeLedger(_RecordLedger[WeekKey]):
    """Weekly incomes of a Year Record, plus the income log."""

    def __init__(self, record: YearRecord):
        super().__init__(record, record.weekly_incomes)
        self.log: TransactionLog[IncomeEntry] = TransactionLog(record.income_log)

    def _validate_key(self, key: WeekKey) -> None:
        self._check_month(key.month)
        if not 0 <= key.week < WEEKS_PER_MONTH:
            raise LedgerKeyError(f"Week index must be 0-4, got {key.week}")

    def key_for(self, on: dt.date, source: Optional[str] = None) -> WeekKey:
        """
        Week cell for a date. Cells are not split by source, but the
        source must still be one of the record's income sources.
        """
        self._check_date(on)
        if source is not None and source not in self._record.income_sources:
            raise LedgerKeyError(f"Unknown income source: {source!r}")
        return WeekKey(on.month - 1, week_of_month(on.day))

    def record(self, entry: IncomeEntry) -> IncomeEntry:
        """Append an income and add its amount to the matching week cell."""
        key = self.key_for(entry.date, entry.source)
        stamped = self.log.append(entry)
        self.increment(key, stamped.amount)
        return stamped
