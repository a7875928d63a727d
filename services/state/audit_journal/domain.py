"""Domain contracts for the append-only Audit Journal."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class JournalCategory(str, Enum):
    """Subsystem that produced one journal event."""

    POLICY = "policy"
    APPROVAL = "approval"
    EXECUTION = "execution"
    INTENT = "intent"


class JournalStatus(str, Enum):
    """Outcome recorded for one journal event."""

    ALLOW = "ALLOW"
    DENY = "DENY"
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class JournalEvent(BaseModel):
    """One decision or lifecycle event, serialized as a single JSON line.

    Wire keys are camelCase (``accountId``, ``reasonCode``...). Unknown keys
    are ignored on read so older or newer writers never break a tail.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    at: datetime
    tenant_id: str | None = None
    account_id: str | None = None
    actor_user_id: str | None = None
    category: JournalCategory
    action: str = Field(min_length=1)
    status: JournalStatus
    reason_code: str | None = None
    details: dict[str, Any] | None = None

    def to_json_line(self) -> str:
        """Serialize to one JSON object without a trailing newline."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class JournalEntry(BaseModel):
    """One tailed journal line: the parsed event, or only the raw text."""

    model_config = ConfigDict(frozen=True)

    raw: str
    event: JournalEvent | None = None

    @property
    def parsed(self) -> bool:
        """Return ``True`` when the line held a valid journal event."""
        return self.event is not None


class JournalWriteError(OSError):
    """Raised when an event cannot be appended to durable journal storage."""


def utc_now() -> datetime:
    """Return current UTC timestamp for journal events."""
    return datetime.now(UTC)
