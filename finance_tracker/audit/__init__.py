"""Audit logging package."""

from finance_tracker.audit.logger import TrackerAuditLogger

__all__ = ["TrackerAuditLogger"]
