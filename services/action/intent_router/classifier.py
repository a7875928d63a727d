"""Regex intent classifier and trust-context classifier.

The intent classifier is best effort: it only labels text for the command
layer and never authorizes anything. Rules are checked in a fixed order and
the first match wins.
"""

from __future__ import annotations

import re

from services.action.approval_service.phrase import parse_approval_phrase
from services.action.intent_router.domain import (
    IntentLabel,
    ParsedIntent,
    TrustContext,
    TrustContextKind,
)
from services.action.policy_service.domain import PolicyMode

_LIMITS = re.compile(r"(max|limit).*(per tx|per transaction)")
_MODE = re.compile(r"read[_ -]?only|confirm[_ -]?always|bounded[_ -]?auto")
_TOGGLE_VERB = re.compile(r"enable|disable")
_INTEGRATION = re.compile(r"polymarket|x402|8004|registry")
_APPROVAL = re.compile(r"approve\s+tx|reject\s+tx")
_CAPABILITIES = re.compile(r"what can you do|capabilities|status")
_AMOUNT = re.compile(r"\$?\s*(\d+(?:\.\d+)?)")

_MODES = {
    "readonly": PolicyMode.READ_ONLY,
    "confirmalways": PolicyMode.CONFIRM_ALWAYS,
    "boundedauto": PolicyMode.BOUNDED_AUTO,
}
_INTEGRATION_NAMES = {
    "polymarket": "polymarket",
    "x402": "x402",
    "8004": "registry8004",
    "registry": "registry8004",
}


def parse_intent(message: str) -> ParsedIntent:
    """Classify one message into an intent label with simple parameters."""
    text = message.strip().lower()

    if _LIMITS.search(text):
        params: dict[str, str | float | bool] = {}
        amount = _AMOUNT.search(text)
        if amount is not None:
            params["maxPerTxUsd"] = float(amount.group(1))
        return ParsedIntent(
            intent=IntentLabel.POLICY_SET_LIMITS, params=params, confidence=0.7
        )

    mode = _MODE.search(text)
    if mode is not None:
        return ParsedIntent(
            intent=IntentLabel.POLICY_SET_MODE,
            params={"mode": _MODES[re.sub(r"[_ -]", "", mode.group(0))].value},
            confidence=0.7,
        )

    verb = _TOGGLE_VERB.search(text)
    integration = _INTEGRATION.search(text)
    if verb is not None and integration is not None:
        return ParsedIntent(
            intent=IntentLabel.POLICY_TOGGLE_INTEGRATION,
            params={
                "integration": _INTEGRATION_NAMES[integration.group(0)],
                "enabled": verb.group(0) == "enable",
            },
            confidence=0.75,
        )

    if _APPROVAL.search(text):
        params = {}
        phrase = parse_approval_phrase(message)
        if phrase is not None:
            params = {"operation": phrase.operation.value, "nonce": phrase.nonce}
        return ParsedIntent(
            intent=IntentLabel.APPROVAL_PHRASE, params=params, confidence=0.95
        )

    if _CAPABILITIES.search(text):
        return ParsedIntent(intent=IntentLabel.CAPABILITIES_QUERY, confidence=0.65)

    return ParsedIntent(intent=IntentLabel.UNKNOWN, confidence=0.1)


def classify_trust_context(
    *,
    is_dm: bool = False,
    owner_present: bool = False,
    participants_are_agents_only: bool = False,
    participant_count: int | None = None,
) -> TrustContext:
    """Classify the conversation a message arrived in."""
    if participants_are_agents_only:
        kind = TrustContextKind.AGENT_ROOM
    elif is_dm and owner_present:
        kind = TrustContextKind.OWNER_DM
    elif owner_present:
        kind = TrustContextKind.OWNER_GROUP
    elif not is_dm:
        kind = TrustContextKind.SHARED_GROUP
    else:
        kind = TrustContextKind.UNKNOWN
    return TrustContext(
        kind=kind,
        owner_present=owner_present,
        participant_count=participant_count,
    )
