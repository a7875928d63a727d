"""Concrete Audit Journal service over a pluggable repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from packages.warden_shared.config import WardenSettings
from packages.warden_shared.logging import get_logger, log_context
from services.state.audit_journal.config import (
    AuditJournalSettings,
    resolve_audit_journal_settings,
)
from services.state.audit_journal.data.repository import (
    InMemoryJournalRepository,
    JsonlJournalRepository,
)
from services.state.audit_journal.domain import (
    JournalCategory,
    JournalEntry,
    JournalEvent,
    JournalStatus,
    JournalWriteError,
    utc_now,
)
from services.state.audit_journal.interfaces import JournalRepository
from services.state.audit_journal.service import AuditJournalService

_LOGGER = get_logger(__name__)


class DefaultAuditJournalService(AuditJournalService):
    """Append-only journal; write failures are logged and re-raised."""

    def __init__(
        self,
        *,
        settings: AuditJournalSettings,
        repository: JournalRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._settings = settings
        self._repository = repository or InMemoryJournalRepository()
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: WardenSettings) -> "DefaultAuditJournalService":
        """Build a JSONL-file journal from root runtime settings."""
        resolved = resolve_audit_journal_settings(settings)
        return cls(
            settings=resolved,
            repository=JsonlJournalRepository(
                path=resolved.journal_path(),
                fsync_writes=resolved.fsync_writes,
            ),
        )

    def append(self, *, event: JournalEvent) -> None:
        try:
            self._repository.append(event=event)
        except JournalWriteError:
            with log_context(
                {
                    "category": event.category.value,
                    "journal_action": event.action,
                    "status": event.status.value,
                }
            ):
                _LOGGER.error("Audit journal append failed", exc_info=True)
            raise

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
        event = JournalEvent(
            at=self._clock(),
            tenant_id=tenant_id,
            account_id=account_id,
            actor_user_id=actor_user_id,
            category=category,
            action=action,
            status=status,
            reason_code=reason_code,
            details=details,
        )
        self.append(event=event)
        return event

    def read_recent(self, *, limit: int | None = None) -> tuple[JournalEntry, ...]:
        resolved = limit if limit is not None and limit > 0 else None
        if resolved is None:
            resolved = self._settings.read_limit_default
        return self._repository.read_recent(
            limit=min(resolved, self._settings.read_limit_max)
        )
