"""
Transaction Log

Append-only sequence of expense or income entries. Entries are never
updated or removed; display order is newest first.
"""

from datetime import datetime, timezone
from typing import Generic, Iterator, TypeVar
from uuid import uuid4

from finance_tracker.models.year_record import ExpenseEntry, IncomeEntry

E = TypeVar("E", ExpenseEntry, IncomeEntry)


class TransactionLog(Generic[E]):
    """
    Wraps a Year Record log list.

    The list is shared with the record, so appends are visible to
    serialization without copying.
    """

    def __init__(self, entries: list[E]):
        self._entries = entries

    def append(self, entry: E) -> E:
        """Stamp the entry with a fresh id and timestamp, then append it."""
        stamped = entry.model_copy(
            update={
                "id": str(uuid4()),
                "timestamp": datetime.now(timezone.utc),
            }
        )
        self._entries.append(stamped)
        return stamped

    def newest_first(self) -> list[E]:
        """Presentation order: most recent entry first."""
        return list(reversed(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[E]:
        return iter(self._entries)
