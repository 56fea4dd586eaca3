"""
Flow tests for year selection: open, create, work, leave.

Uses in-memory storage; nothing talks to a real backend.
"""

import asyncio

import pytest
from decimal import Decimal

from finance_tracker.audit import TrackerAuditLogger
from finance_tracker.config import Settings
from finance_tracker.models import TrackerEventType, YearRecord
from finance_tracker.orchestrator import TrackerApp, create_tracker_app
from finance_tracker.services.storage import (
    AuthenticationError,
    ConflictError,
    InMemoryAuditStorage,
    InMemoryTrackerStorage,
    NotFoundError,
)
from finance_tracker.sync import SyncState

DEBOUNCE = 0.05


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("TRACKER_SYNC_DEBOUNCE_SECONDS", str(DEBOUNCE))
    monkeypatch.setenv("DEFAULT_CATEGORIES", "Rent, Food")
    monkeypatch.setenv("DEFAULT_INCOME_SOURCES", "Salary")
    return Settings()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


def _app(storage, settings, audit_storage=None):
    return TrackerApp(
        storage,
        audit_logger=TrackerAuditLogger(audit_storage),
        settings=settings,
    )


class TestOpenYear:
    """Tests for TrackerApp.open_year."""

    def test_missing_year_returns_none(self, settings, audit_storage):
        """Test a 404 is reported as 'create it', not as an error."""
        app = _app(InMemoryTrackerStorage(), settings, audit_storage)

        assert asyncio.run(app.open_year(2025)) is None
        assert app.session is None
        types = [e.event_type for e in audit_storage.get_recent_events()]
        assert types == [TrackerEventType.YEAR_NOT_FOUND]

    def test_open_existing_year_does_not_write(self, settings):
        """Test loading a year never schedules a save."""
        async def scenario():
            storage = InMemoryTrackerStorage()
            await storage.create_year(YearRecord.new(2025, ["Rent"], ["Salary"]))
            app = _app(storage, settings)
            session = await app.open_year(2025)
            state = session.saver.state
            await asyncio.sleep(DEBOUNCE * 3)
            return session, state

        session, state = asyncio.run(scenario())
        assert session.year == 2025
        assert session.record.categories == ["Rent"]
        assert state == SyncState.CLEAN

    def test_auth_failure_is_raised(self, settings, audit_storage):
        app = _app(InMemoryTrackerStorage(user_id=None), settings, audit_storage)
        with pytest.raises(AuthenticationError):
            asyncio.run(app.open_year(2025))
        event = audit_storage.get_recent_events()[0]
        assert event.event_type == TrackerEventType.AUTHENTICATION_FAILED


class TestCreateYear:
    """Tests for TrackerApp.create_year."""

    def test_create_with_comma_separated_names(self, settings):
        async def scenario():
            app = _app(InMemoryTrackerStorage(), settings)
            session = await app.create_year(2026, "Rent, Food ,, Travel", ["Salary", " "])
            session.close()
            return session

        session = asyncio.run(scenario())
        assert session.record.categories == ["Rent", "Food", "Travel"]
        assert session.record.income_sources == ["Salary"]
        assert session.record.daily_expenses == {}
        assert session.record.expense_log == []

    def test_create_uses_configured_defaults(self, settings):
        async def scenario():
            app = _app(InMemoryTrackerStorage(), settings)
            return await app.create_year(2026)

        session = asyncio.run(scenario())
        assert session.record.categories == ["Rent", "Food"]
        assert session.record.income_sources == ["Salary"]

    def test_create_existing_year_conflicts(self, settings, audit_storage):
        async def scenario():
            storage = InMemoryTrackerStorage()
            await storage.create_year(YearRecord.new(2025, ["Rent"], []))
            app = _app(storage, settings, audit_storage)
            await app.create_year(2025, ["Food"], [])

        with pytest.raises(ConflictError):
            asyncio.run(scenario())
        event = audit_storage.get_recent_events()[0]
        assert event.event_type == TrackerEventType.YEAR_CREATE_CONFLICT

    def test_duplicate_names_rejected_before_storage(self, settings):
        storage = InMemoryTrackerStorage()
        app = _app(storage, settings)
        with pytest.raises(ValueError, match="Duplicate names"):
            asyncio.run(app.create_year(2025, "Rent, Rent", []))
        with pytest.raises(NotFoundError):
            asyncio.run(storage.fetch_year(2025))


class TestFullFlow:
    """Create, edit, save, reopen."""

    def test_edits_are_saved_after_debounce(self, settings):
        async def scenario():
            storage = InMemoryTrackerStorage()
            app = _app(storage, settings)
            session = await app.create_year(2025)
            session.add_expense(100, "Rent", "2025-03-05", item="March rent")
            session.add_income(2500, "Salary", "2025-03-01")
            await asyncio.sleep(DEBOUNCE * 3)
            await session.saver.drain()
            app.leave_year()
            reopened = await app.open_year(2025)
            return reopened

        session = asyncio.run(scenario())
        totals = session.totals
        assert totals.monthly_totals[2].total_expenditure == Decimal("100")
        assert totals.monthly_totals[2].income == Decimal("2500")
        assert totals.gross_savings == Decimal("2400")
        assert session.expense_log_view()[0].item == "March rent"

    def test_leave_year_discards_pending_write(self, settings, audit_storage):
        """Test leaving before the deadline drops the last edits."""
        async def scenario():
            storage = InMemoryTrackerStorage()
            app = _app(storage, settings, audit_storage)
            session = await app.create_year(2025)
            session.set_budget("Rent", 900)
            discarded = app.leave_year()
            await asyncio.sleep(DEBOUNCE * 3)
            stored = await storage.fetch_year(2025)
            return app, discarded, stored

        app, discarded, stored = asyncio.run(scenario())
        assert discarded is True
        assert app.session is None
        assert stored.budgets == {}
        types = [e.event_type for e in audit_storage.get_recent_events()]
        assert types[:2] == [TrackerEventType.YEAR_LEFT, TrackerEventType.SAVE_DISCARDED]

    def test_leave_without_session(self, settings):
        assert _app(InMemoryTrackerStorage(), settings).leave_year() is False

    def test_sync_disabled_keeps_edits_local(self, monkeypatch, settings):
        monkeypatch.setenv("TRACKER_SYNC_ENABLED", "false")

        async def scenario():
            storage = InMemoryTrackerStorage()
            app = _app(storage, Settings())
            session = await app.create_year(2025)
            session.set_budget("Rent", 900)
            await asyncio.sleep(DEBOUNCE * 3)
            return session, await storage.fetch_year(2025)

        session, stored = asyncio.run(scenario())
        assert session.saver is None
        assert session.budget("Rent") == Decimal("900")
        assert stored.budgets == {}


class TestFactory:
    """Tests for create_tracker_app."""

    def test_offline_app_uses_memory_storage(self, settings):
        app = create_tracker_app(use_backend=False)
        assert isinstance(app._storage, InMemoryTrackerStorage)

    def test_backend_app_uses_given_token(self):
        app = create_tracker_app(token="abc")
        assert app._storage.token == "abc"
