"""Audit Journal repository implementations."""

from __future__ import annotations

import json
import os
from collections import deque
from pathlib import Path
from threading import Lock

from pydantic import ValidationError

from services.state.audit_journal.domain import (
    JournalEntry,
    JournalEvent,
    JournalWriteError,
)
from services.state.audit_journal.interfaces import JournalRepository


class InMemoryJournalRepository(JournalRepository):
    """Append-only in-memory journal used by tests and dry runs."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._lock = Lock()

    def append(self, *, event: JournalEvent) -> None:
        line = event.to_json_line()
        with self._lock:
            self._lines.append(line)

    def read_recent(self, *, limit: int) -> tuple[JournalEntry, ...]:
        with self._lock:
            tail = self._lines[-limit:] if limit > 0 else []
        return tuple(parse_journal_line(line) for line in tail)

    def events(self) -> tuple[JournalEvent, ...]:
        """Expose every stored event in append order for tests."""
        with self._lock:
            lines = tuple(self._lines)
        return tuple(
            entry.event
            for entry in (parse_journal_line(line) for line in lines)
            if entry.event is not None
        )


class JsonlJournalRepository(JournalRepository):
    """Newline-delimited JSON journal file, one event per line.

    Appends are serialized with a lock and flushed before returning, so a
    record is either fully written or the caller sees ``JournalWriteError``.
    Nothing is buffered across calls.
    """

    def __init__(self, *, path: Path, fsync_writes: bool = False) -> None:
        self._path = path
        self._fsync_writes = fsync_writes
        self._lock = Lock()

    @property
    def path(self) -> Path:
        """Return the journal file path."""
        return self._path

    def append(self, *, event: JournalEvent) -> None:
        line = f"{event.to_json_line()}\n"
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as handle:
                    handle.write(line)
                    handle.flush()
                    if self._fsync_writes:
                        os.fsync(handle.fileno())
            except OSError as exc:
                raise JournalWriteError(
                    f"failed to append journal event to {self._path}: {exc}"
                ) from exc

    def read_recent(self, *, limit: int) -> tuple[JournalEntry, ...]:
        if limit <= 0 or not self._path.exists():
            return ()
        tail: deque[str] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8", errors="replace") as handle:
            for line in handle:
                stripped = line.strip()
                if stripped:
                    tail.append(stripped)
        return tuple(parse_journal_line(line) for line in tail)


def parse_journal_line(line: str) -> JournalEntry:
    """Parse one journal line; malformed or partial lines come back raw."""
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        return JournalEntry(raw=line)
    if not isinstance(payload, dict):
        return JournalEntry(raw=line)
    try:
        event = JournalEvent.model_validate(payload)
    except ValidationError:
        return JournalEntry(raw=line)
    return JournalEntry(raw=line, event=event)
