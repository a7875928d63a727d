"""Free-text approval phrase parsing.

Recognizes ``APPROVE TX <nonce>`` and ``REJECT TX <nonce>`` anywhere in the
text, case-insensitively, with an optional ``--actor-user-id <id>`` flag. The
actor is only ever taken from that flag.
"""

from __future__ import annotations

import re

from services.action.approval_service.domain import (
    ParsedApprovalPhrase,
    PhraseOperation,
    normalize_nonce,
)

_PATTERNS: tuple[tuple[PhraseOperation, re.Pattern[str]], ...] = (
    (PhraseOperation.APPROVE, re.compile(r"\bAPPROVE\s+TX\s+([A-Za-z0-9_-]+)", re.IGNORECASE)),
    (PhraseOperation.REJECT, re.compile(r"\bREJECT\s+TX\s+([A-Za-z0-9_-]+)", re.IGNORECASE)),
)
_ACTOR_PATTERN = re.compile(r"--actor-user-id\s+(\S+)", re.IGNORECASE)


def parse_approval_phrase(text: str | None) -> ParsedApprovalPhrase | None:
    """Return the recognized phrase, or ``None`` when the text has none."""
    value = (text or "").strip()
    for operation, pattern in _PATTERNS:
        match = pattern.search(value)
        if match is None:
            continue
        actor = _ACTOR_PATTERN.search(value)
        return ParsedApprovalPhrase(
            operation=operation,
            nonce=normalize_nonce(match.group(1)),
            actor_user_id=actor.group(1) if actor else None,
        )
    return None
