"""Audit Journal persistence package."""

from services.state.audit_journal.data.repository import (
    InMemoryJournalRepository,
    JsonlJournalRepository,
)

__all__ = ["InMemoryJournalRepository", "JsonlJournalRepository"]
