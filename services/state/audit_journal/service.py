"""Authoritative in-process Python API for the Audit Journal."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from packages.warden_shared.config import WardenSettings
from services.state.audit_journal.domain import (
    JournalCategory,
    JournalEntry,
    JournalEvent,
    JournalStatus,
)


class AuditJournalService(ABC):
    """Public API for appending and tailing audit events."""

    @abstractmethod
    def append(self, *, event: JournalEvent) -> None:
        """Append one event; raise ``JournalWriteError`` on I/O failure."""

    @abstractmethod
    def record(
        self,
        *,
        category: JournalCategory,
        action: str,
        status: JournalStatus,
        account_id: str | None = None,
        actor_user_id: str | None = None,
        tenant_id: str | None = None,
        reason_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> JournalEvent:
        """Stamp, append and return one event."""

    @abstractmethod
    def read_recent(self, *, limit: int | None = None) -> tuple[JournalEntry, ...]:
        """Return recent entries, oldest first, tolerating malformed lines."""


def build_audit_journal_service(*, settings: WardenSettings) -> AuditJournalService:
    """Build the file-backed Audit Journal from typed settings."""
    from services.state.audit_journal.implementation import DefaultAuditJournalService

    return DefaultAuditJournalService.from_settings(settings)
