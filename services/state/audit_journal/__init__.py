"""Audit Journal package exports."""

from services.state.audit_journal.component import SERVICE_COMPONENT_ID
from services.state.audit_journal.config import (
    AuditJournalSettings,
    resolve_audit_journal_settings,
)
from services.state.audit_journal.data.repository import (
    InMemoryJournalRepository,
    JsonlJournalRepository,
    parse_journal_line,
)
from services.state.audit_journal.domain import (
    JournalCategory,
    JournalEntry,
    JournalEvent,
    JournalStatus,
    JournalWriteError,
)
from services.state.audit_journal.implementation import DefaultAuditJournalService
from services.state.audit_journal.interfaces import JournalRepository
from services.state.audit_journal.service import (
    AuditJournalService,
    build_audit_journal_service,
)

__all__ = [
    "AuditJournalService",
    "AuditJournalSettings",
    "DefaultAuditJournalService",
    "InMemoryJournalRepository",
    "JournalCategory",
    "JournalEntry",
    "JournalEvent",
    "JournalRepository",
    "JournalStatus",
    "JournalWriteError",
    "JsonlJournalRepository",
    "SERVICE_COMPONENT_ID",
    "build_audit_journal_service",
    "parse_journal_line",
    "resolve_audit_journal_settings",
]
