"""
Tests for debounced persistence and the tracker session.

Async behaviour runs on a fresh event loop per test via asyncio.run,
with a short debounce interval.
"""

import asyncio

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.audit import TrackerAuditLogger
from finance_tracker.ledger import InvalidAmountError, LedgerKeyError
from finance_tracker.models import DayKey, TrackerEventType, WeekKey, YearRecord
from finance_tracker.services.storage import (
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryTrackerStorage,
    StorageError,
)
from finance_tracker.session import TrackerSession, parse_date
from finance_tracker.sync import DebouncedSaver, SyncState

DEBOUNCE = 0.05


class RecordingStorage(InMemoryTrackerStorage):
    """In-memory storage remembering every replace call."""

    def __init__(self, fail_writes: int = 0):
        super().__init__()
        self.writes: list[dict] = []
        self.fail_writes = fail_writes

    async def replace_year(self, record):
        if self.fail_writes:
            self.fail_writes -= 1
            raise ConnectionError("backend unreachable")
        self.writes.append(record.to_wire())
        return await super().replace_year(record)


async def _make_session(storage, audit_storage=None):
    record = YearRecord.new(2025, ["Rent", "Food"], ["Salary"])
    await storage.create_year(record)
    audit = TrackerAuditLogger(audit_storage)
    saver = DebouncedSaver(storage, record, debounce_seconds=DEBOUNCE, audit_logger=audit)
    return TrackerSession(record, saver=saver, audit_logger=audit)


async def _settle():
    await asyncio.sleep(DEBOUNCE * 3)


class TestDebouncedSaver:
    """Tests for the debounce state machine."""

    def test_new_session_does_not_write(self):
        """Test constructing a session from a loaded record schedules nothing."""
        async def scenario():
            storage = RecordingStorage()
            session = await _make_session(storage)
            assert session.saver.state == SyncState.CLEAN
            await _settle()
            return storage

        storage = asyncio.run(scenario())
        assert storage.writes == []

    def test_mutation_moves_to_pending(self):
        async def scenario():
            storage = RecordingStorage()
            session = await _make_session(storage)
            session.set_budget("Rent", 900)
            state, deadline = session.saver.state, session.saver.deadline
            session.close()
            return state, deadline

        state, deadline = asyncio.run(scenario())
        assert state == SyncState.PENDING_WRITE
        assert deadline is not None

    def test_burst_coalesces_into_one_write(self):
        """Test three quick mutations produce one write with the final state."""
        async def scenario():
            storage = RecordingStorage()
            session = await _make_session(storage)
            session.add_expense(100, "Rent", "2025-03-05", item="Rent")
            await asyncio.sleep(DEBOUNCE / 3)
            session.add_expense(12, "Food", "2025-03-05")
            await asyncio.sleep(DEBOUNCE / 3)
            session.set_weekly_income(2, 0, 3000)
            await _settle()
            await session.saver.drain()
            return storage, session.saver.state

        storage, state = asyncio.run(scenario())
        assert state == SyncState.CLEAN
        assert len(storage.writes) == 1
        written = storage.writes[0]
        assert written["dailyExpenses"] == {"2-5-Rent": 100.0, "2-5-Food": 12.0}
        assert written["weeklyIncomes"] == {"2-0": 3000.0}
        assert len(written["expenseLog"]) == 2

    def test_mutation_resets_deadline(self):
        async def scenario():
            storage = RecordingStorage()
            session = await _make_session(storage)
            session.set_budget("Rent", 1)
            first = session.saver.deadline
            await asyncio.sleep(DEBOUNCE / 2)
            session.set_budget("Rent", 2)
            second = session.saver.deadline
            session.close()
            return first, second

        first, second = asyncio.run(scenario())
        assert second > first

    def test_separate_windows_write_separately(self):
        async def scenario():
            storage = RecordingStorage()
            session = await _make_session(storage)
            session.set_budget("Rent", 1)
            await _settle()
            session.set_budget("Rent", 2)
            await _settle()
            await session.saver.drain()
            return storage

        storage = asyncio.run(scenario())
        assert [w["budgets"] for w in storage.writes] == [{"Rent": 1.0}, {"Rent": 2.0}]

    def test_failed_write_is_dropped_then_heals(self):
        """Test a failed save is not retried; the next edit re-sends full state."""
        async def scenario():
            storage = RecordingStorage(fail_writes=1)
            audit_storage = InMemoryAuditStorage()
            session = await _make_session(storage, audit_storage)
            session.set_daily_expense(0, 1, "Food", 5)
            await _settle()
            await session.saver.drain()
            writes_after_failure = list(storage.writes)
            error = session.saver.last_error

            session.set_daily_expense(0, 2, "Food", 7)
            await _settle()
            await session.saver.drain()
            return storage, writes_after_failure, error, session.saver.last_error, audit_storage

        storage, writes_after_failure, error, last_error, audit_storage = asyncio.run(scenario())
        assert writes_after_failure == []
        assert isinstance(error, ConnectionError)
        assert last_error is None
        assert len(storage.writes) == 1
        assert storage.writes[0]["dailyExpenses"] == {"0-1-Food": 5.0, "0-2-Food": 7.0}
        types = [e.event_type for e in audit_storage.get_recent_events()]
        assert TrackerEventType.SAVE_FAILED in types
        assert types[0] == TrackerEventType.SAVE_COMPLETED

    def test_discard_drops_pending_write(self):
        """Test leaving before the deadline loses the last edits (no flush)."""
        async def scenario():
            storage = RecordingStorage()
            session = await _make_session(storage)
            saver = session.saver
            session.add_income(500, "Salary", date(2025, 1, 3))
            dropped = session.close()
            await _settle()
            return storage, dropped, saver.state

        storage, dropped, state = asyncio.run(scenario())
        assert dropped is True
        assert state == SyncState.CLEAN
        assert storage.writes == []

    def test_discard_when_clean(self):
        async def scenario():
            session = await _make_session(RecordingStorage())
            return session.close()

        assert asyncio.run(scenario()) is False

    def test_edit_during_in_flight_write(self):
        """Test a write sends the state at fire time; later edits get their own write."""
        class SlowStorage(RecordingStorage):
            async def replace_year(self, record):
                snapshot = record.to_wire()
                await asyncio.sleep(DEBOUNCE * 2)
                self.writes.append(snapshot)
                return record

        async def scenario():
            storage = SlowStorage()
            session = await _make_session(storage)
            session.set_budget("Food", 10)
            await asyncio.sleep(DEBOUNCE * 1.5)
            in_flight = session.saver.writes_in_flight
            session.set_budget("Food", 20)
            await _settle()
            await session.saver.drain()
            return storage, session, in_flight

        storage, session, in_flight = asyncio.run(scenario())
        assert in_flight == 1
        assert [w["budgets"] for w in storage.writes] == [{"Food": 10.0}, {"Food": 20.0}]
        assert session.budget("Food") == Decimal("20")

    def test_unexpected_write_failure_is_dropped(self):
        """Test a non-storage exception from the backend is logged like a failed save."""
        class BrokenStorage(RecordingStorage):
            async def replace_year(self, record):
                raise RuntimeError("decode failure")

        async def scenario():
            audit_storage = InMemoryAuditStorage()
            session = await _make_session(BrokenStorage(), audit_storage)
            session.set_budget("Food", 5)
            await _settle()
            await session.saver.drain()
            return session.saver, audit_storage

        saver, audit_storage = asyncio.run(scenario())
        assert isinstance(saver.last_error, StorageError)
        assert "decode failure" in str(saver.last_error)
        assert saver.state == SyncState.CLEAN
        latest = audit_storage.get_recent_events()[0]
        assert latest.event_type == TrackerEventType.SAVE_FAILED
        assert "RuntimeError" in latest.error_message

    def test_closed_session_no_longer_syncs(self):
        """Test edits to a session after close() never schedule a write."""
        async def scenario():
            storage = RecordingStorage()
            session = await _make_session(storage)
            session.close()
            session.set_budget("Rent", 900)
            await _settle()
            return storage, session

        storage, session = asyncio.run(scenario())
        assert session.saver is None
        assert session.budget("Rent") == Decimal("900")
        assert storage.writes == []

    def test_mutation_outside_event_loop_changes_nothing(self):
        """Test a synced session refuses edits made outside the event loop."""
        session = asyncio.run(_make_session(RecordingStorage()))

        with pytest.raises(RuntimeError):
            session.add_expense(10, "Food", "2025-01-01")
        with pytest.raises(RuntimeError):
            session.set_weekly_income(0, 0, 10)

        assert session.record.expense_log == []
        assert session.record.daily_expenses == {}
        assert session.record.weekly_incomes == {}
        assert session.saver.state == SyncState.CLEAN


class TestTrackerSession:
    """Tests for the session mutation API (no saver)."""

    @pytest.fixture
    def session(self):
        return TrackerSession(YearRecord.new(2025, ["Rent", "Food"], ["Salary"]))

    def test_add_expense_scenario(self, session):
        """Test adding a March rent expense updates cell, log and totals."""
        entry = session.add_expense(100, "Rent", "2025-03-05", item="March rent")

        assert session.daily_expense(2, 5, "Rent") == Decimal("100")
        assert session.expense_log_view() == [entry]
        assert session.totals.monthly_totals[2].category_totals == [Decimal("100"), Decimal("0")]
        assert session.totals.monthly_totals[2].total_expenditure == Decimal("100")

    def test_add_expense_increments_existing_cell(self, session):
        session.set_daily_expense(2, 5, "Rent", "50")
        session.add_expense("25.25", "Rent", date(2025, 3, 5))
        assert session.daily_expense(2, 5, "Rent") == Decimal("75.25")
        assert len(session.record.expense_log) == 1

    def test_add_income_updates_week_cell(self, session):
        """Test an income on day d lands in week floor((d - 1) / 7)."""
        session.add_income(1500, "Salary", "2025-04-22", invoice="INV-7")
        assert session.weekly_income(3, 3) == Decimal("1500")
        assert session.totals.monthly_totals[3].income == Decimal("1500")
        assert session.income_log_view()[0].invoice == "INV-7"

    def test_totals_recomputed_after_mutation(self, session):
        before = session.totals
        session.set_weekly_income(0, 0, 10)
        assert session.totals is not before
        assert session.totals.total_income == Decimal("10")

    def test_feb_29_accepted_in_leap_year(self):
        session = TrackerSession(YearRecord.new(2024, ["Food"], []))
        session.add_expense(9, "Food", "2024-02-29")
        assert session.totals.monthly_totals[1].total_expenditure == Decimal("9")

    def test_feb_29_rejected_in_common_year(self, session):
        """Test 2025-02-29 is rejected, not clamped to Feb 28."""
        with pytest.raises(LedgerKeyError, match="Not a valid calendar date"):
            session.add_expense(9, "Food", "2025-02-29")
        with pytest.raises(LedgerKeyError):
            session.set_daily_expense(1, 29, "Food", 9)
        assert session.record.expense_log == []
        assert session.record.daily_expenses == {}

    def test_transaction_requires_amount(self, session):
        with pytest.raises(InvalidAmountError):
            session.add_expense("", "Food", "2025-01-01")

    def test_blank_cell_edit_clears(self, session):
        session.set_weekly_income(0, 1, 100)
        session.set_weekly_income(0, 1, "")
        assert session.record.weekly_incomes == {}

    def test_set_budget_unknown_category(self, session):
        with pytest.raises(LedgerKeyError):
            session.set_budget("Travel", 100)

    def test_set_budget(self, session):
        session.set_budget("Rent", "950")
        assert session.budget("Rent") == Decimal("950")
        assert session.record.budgets == {"Rent": Decimal("950")}

    def test_mutations_are_audited(self):
        audit_storage = InMemoryAuditStorage()
        session = TrackerSession(
            YearRecord.new(2025, ["Rent"], ["Salary"]),
            audit_logger=TrackerAuditLogger(audit_storage),
        )
        session.add_expense(1, "Rent", "2025-01-01")
        session.set_daily_expense(0, 2, "Rent", 3)
        types = [e.event_type for e in audit_storage.get_recent_events()]
        assert types == [
            TrackerEventType.DAILY_EXPENSE_EDITED,
            TrackerEventType.EXPENSE_ADDED,
        ]

    def test_parse_date(self):
        assert parse_date("2025-12-31") == date(2025, 12, 31)
        assert parse_date(date(2025, 1, 1)) == date(2025, 1, 1)
        with pytest.raises(LedgerKeyError):
            parse_date("31/12/2025")

    def test_session_cells_use_composite_keys(self, session):
        session.set_daily_expense(0, 1, "Food", 1)
        session.set_weekly_income(0, 0, 1)
        assert list(session.record.daily_expenses) == [DayKey(0, 1, "Food")]
        assert list(session.record.weekly_incomes) == [WeekKey(0, 0)]
