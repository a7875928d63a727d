"""Envelope metadata: who called, from where, and under which trace."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from packages.warden_shared.ids import generate_ulid_str


class EnvelopeKind(str, Enum):
    """Envelope intent; ``UNSPECIFIED`` never passes validation."""

    UNSPECIFIED = "unspecified"
    COMMAND = "command"
    EVENT = "event"
    RESULT = "result"


@dataclass(frozen=True)
class EnvelopeMeta:
    """Metadata attached to every service call and its result.

    ``principal`` is the authenticated caller of the entry point (for example
    the CLI operator). It is never used as an implicit policy actor.
    """

    envelope_id: str
    trace_id: str
    parent_id: str
    timestamp: datetime
    kind: EnvelopeKind
    source: str
    principal: str


def new_meta(
    *,
    kind: EnvelopeKind,
    source: str,
    principal: str,
    trace_id: str | None = None,
    parent_id: str = "",
    envelope_id: str | None = None,
    timestamp: datetime | None = None,
) -> EnvelopeMeta:
    """Build metadata, minting ULID ids and a UTC timestamp when omitted.

    A fresh trace id is minted only when none is given; it then equals the
    envelope id, marking the root of a trace.
    """
    resolved_id = envelope_id or generate_ulid_str()
    if timestamp is None:
        resolved_at = datetime.now(UTC)
    elif timestamp.tzinfo is None:
        resolved_at = timestamp.replace(tzinfo=UTC)
    else:
        resolved_at = timestamp.astimezone(UTC)
    return EnvelopeMeta(
        envelope_id=resolved_id,
        trace_id=trace_id or resolved_id,
        parent_id=parent_id,
        timestamp=resolved_at,
        kind=kind,
        source=source,
        principal=principal,
    )
