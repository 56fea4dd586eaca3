"""
Year Record Models

One Year Record exists per (user, year). It is the only thing that is
persisted; every total shown to the user is derived from it.

DESIGN DECISION: Ledger cells are keyed by explicit composite key types
(DayKey, WeekKey) instead of "{month}-{day}-{category}" strings.
The string encoding only exists at the wire boundary (to_wire/from_wire),
so a category containing "-" can never collide with another key.

Amounts are Decimal so that rollups add up exactly; they are sent to the
backend as plain JSON numbers.
"""

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any, NamedTuple, Optional
from uuid import uuid4

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


logger = structlog.get_logger(__name__)

Amount = Annotated[Decimal, Field(ge=0)]


# =============================================================================
# COMPOSITE LEDGER KEYS
# =============================================================================

class DayKey(NamedTuple):
    """Key of a daily expense cell: (monthIndex 0-11, dayOfMonth 1-31, category)."""
    month: int
    day: int
    category: str

    def encode(self) -> str:
        return f"{self.month}-{self.day}-{self.category}"

    @classmethod
    def decode(cls, raw: str) -> "DayKey":
        """
        Parse a wire key. Categories may contain "-", so only the
        first two dashes separate fields.
        """
        parts = raw.split("-", 2)
        if len(parts) != 3 or not parts[2]:
            raise ValueError(f"Malformed daily expense key: {raw!r}")
        return cls(int(parts[0]), int(parts[1]), parts[2])


class WeekKey(NamedTuple):
    """Key of a weekly income cell: (monthIndex 0-11, weekIndex 0-4)."""
    month: int
    week: int

    def encode(self) -> str:
        return f"{self.month}-{self.week}"

    @classmethod
    def decode(cls, raw: str) -> "WeekKey":
        parts = raw.split("-")
        if len(parts) != 2:
            raise ValueError(f"Malformed weekly income key: {raw!r}")
        return cls(int(parts[0]), int(parts[1]))


# =============================================================================
# TRANSACTION LOG ENTRIES
# =============================================================================

def _new_entry_id() -> str:
    return str(uuid4())


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class _LogEntry(BaseModel):
    """Fields shared by expense and income log entries."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=_new_entry_id,
        description="Unique entry ID, assigned on append"
    )
    timestamp: dt.datetime = Field(
        default_factory=_utc_now,
        description="When the entry was recorded"
    )
    amount: Amount = Field(
        ...,
        description="Transaction amount"
    )
    date: dt.date = Field(
        ...,
        description="Date the transaction happened on"
    )

    @field_serializer('amount')
    def serialize_amount(self, v: Decimal) -> float:
        return float(v)


class ExpenseEntry(_LogEntry):
    """A single purchase, e.g. a Netflix subscription under "Subscriptions"."""

    category: str = Field(
        ...,
        min_length=1,
        description="Expense category (must be one of the record's categories)"
    )
    item: str = Field(
        default="",
        max_length=200,
        description="What was bought"
    )


class IncomeEntry(_LogEntry):
    """A single payment received from an income source."""

    source: str = Field(
        ...,
        min_length=1,
        description="Income source (must be one of the record's income sources)"
    )
    invoice: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Invoice number, if any"
    )


# =============================================================================
# YEAR RECORD
# =============================================================================

class YearRecord(BaseModel):
    """
    All financial data of one user for one year.

    Ledger maps are sparse: a missing key means an amount of 0.
    Mutate through the ledger classes (finance_tracker.ledger) so that
    key domains and the log/ledger dual write are enforced.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    year: int = Field(
        ...,
        ge=1,
        le=9999,
        frozen=True,
        description="Calendar year, immutable once created"
    )
    categories: list[str] = Field(
        default_factory=list,
        description="Ordered, distinct expense categories"
    )
    income_sources: list[str] = Field(
        default_factory=list,
        description="Ordered, distinct income sources"
    )
    daily_expenses: dict[DayKey, Amount] = Field(default_factory=dict)
    weekly_incomes: dict[WeekKey, Amount] = Field(default_factory=dict)
    budgets: dict[str, Amount] = Field(
        default_factory=dict,
        description="Planned monthly amount per category"
    )
    expense_log: list[ExpenseEntry] = Field(default_factory=list)
    income_log: list[IncomeEntry] = Field(default_factory=list)

    @field_validator('categories', 'income_sources')
    @classmethod
    def validate_names(cls, v: list[str]) -> list[str]:
        """Names are stripped, blank names rejected, duplicates rejected."""
        names = [name.strip() for name in v]
        if any(not name for name in names):
            raise ValueError("Names cannot be blank")
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate names: {', '.join(duplicates)}")
        return names

    @classmethod
    def new(
        cls,
        year: int,
        categories: list[str],
        income_sources: list[str],
    ) -> "YearRecord":
        """An empty record, as sent with the creation request."""
        return cls(year=year, categories=categories, income_sources=income_sources)

    # -------------------------------------------------------------------------
    # Wire format
    # -------------------------------------------------------------------------

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the backend's JSON document (camelCase, string keys)."""
        return {
            "year": self.year,
            "categories": list(self.categories),
            "incomeSources": list(self.income_sources),
            "dailyExpenses": {
                key.encode(): float(amount)
                for key, amount in self.daily_expenses.items()
            },
            "weeklyIncomes": {
                key.encode(): float(amount)
                for key, amount in self.weekly_incomes.items()
            },
            "budgets": {
                category: float(amount)
                for category, amount in self.budgets.items()
            },
            "expenseLog": [entry.model_dump(mode="json") for entry in self.expense_log],
            "incomeLog": [entry.model_dump(mode="json") for entry in self.income_log],
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "YearRecord":
        """
        Parse a backend document.

        Server-only fields (_id, userId, __v) are ignored. Ledger keys
        that cannot be parsed and null amounts are dropped with a warning.
        """
        return cls(
            year=data["year"],
            categories=data.get("categories") or [],
            income_sources=data.get("incomeSources") or [],
            daily_expenses=_decode_cells(
                data.get("dailyExpenses"), DayKey.decode, "dailyExpenses"
            ),
            weekly_incomes=_decode_cells(
                data.get("weeklyIncomes"), WeekKey.decode, "weeklyIncomes"
            ),
            budgets={
                category: amount
                for category, amount in (data.get("budgets") or {}).items()
                if amount is not None
            },
            expense_log=data.get("expenseLog") or [],
            income_log=data.get("incomeLog") or [],
        )


def _decode_cells(raw: Optional[dict], decode, field_name: str) -> dict:
    cells = {}
    for raw_key, amount in (raw or {}).items():
        if amount is None:
            continue
        try:
            key = decode(raw_key)
        except ValueError:
            logger.warning("ledger_key_dropped", field=field_name, key=raw_key)
            continue
        cells[key] = amount
    return cells
