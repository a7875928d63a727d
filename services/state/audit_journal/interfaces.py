"""Transport-neutral protocol interfaces for Audit Journal persistence."""

from __future__ import annotations

from typing import Protocol

from services.state.audit_journal.domain import JournalEntry, JournalEvent


class JournalRepository(Protocol):
    """Protocol for append-only journal storage."""

    def append(self, *, event: JournalEvent) -> None:
        """Persist exactly one event after every previously appended one."""

    def read_recent(self, *, limit: int) -> tuple[JournalEntry, ...]:
        """Return up to ``limit`` most recent entries in append order."""
