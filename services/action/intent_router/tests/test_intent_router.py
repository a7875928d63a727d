"""Unit tests for intent parsing and trust-context classification."""

from __future__ import annotations

import pytest

from services.action.intent_router.classifier import (
    classify_trust_context,
    parse_intent,
)
from services.action.intent_router.domain import IntentLabel, TrustContextKind
from services.action.intent_router.implementation import DefaultIntentRouterService
from services.state.audit_journal.config import AuditJournalSettings
from services.state.audit_journal.data.repository import InMemoryJournalRepository
from services.state.audit_journal.domain import JournalCategory, JournalStatus
from services.state.audit_journal.implementation import DefaultAuditJournalService


@pytest.mark.parametrize(
    ("message", "label", "confidence"),
    [
        ("Set max per tx to 75", IntentLabel.POLICY_SET_LIMITS, 0.7),
        ("switch to read-only please", IntentLabel.POLICY_SET_MODE, 0.7),
        ("disable polymarket", IntentLabel.POLICY_TOGGLE_INTEGRATION, 0.75),
        ("APPROVE TX K7PQ", IntentLabel.APPROVAL_PHRASE, 0.95),
        ("what can you do?", IntentLabel.CAPABILITIES_QUERY, 0.65),
        ("good morning", IntentLabel.UNKNOWN, 0.1),
    ],
)
def test_parse_intent_labels(message: str, label: IntentLabel, confidence: float) -> None:
    parsed = parse_intent(message)

    assert parsed.intent == label
    assert parsed.confidence == confidence


def test_rules_are_checked_in_priority_order() -> None:
    assert parse_intent("limit per tx in bounded auto").intent == IntentLabel.POLICY_SET_LIMITS
    assert parse_intent("enable x402 and go confirm_always").intent == IntentLabel.POLICY_SET_MODE
    assert parse_intent("enable registry status").intent == IntentLabel.POLICY_TOGGLE_INTEGRATION


def test_parse_intent_extracts_params() -> None:
    assert parse_intent("max per transaction $12.5").params == {"maxPerTxUsd": 12.5}
    assert parse_intent("go BoundedAuto").params == {"mode": "BOUNDED_AUTO"}
    assert parse_intent("please enable 8004").params == {
        "integration": "registry8004",
        "enabled": True,
    }
    assert parse_intent("disable x402").params == {"integration": "x402", "enabled": False}
    assert parse_intent("reject tx ab12").params == {"operation": "reject", "nonce": "AB12"}


@pytest.mark.parametrize(
    ("kwargs", "kind"),
    [
        ({"participants_are_agents_only": True, "is_dm": True, "owner_present": True}, TrustContextKind.AGENT_ROOM),
        ({"is_dm": True, "owner_present": True}, TrustContextKind.OWNER_DM),
        ({"owner_present": True}, TrustContextKind.OWNER_GROUP),
        ({}, TrustContextKind.SHARED_GROUP),
        ({"is_dm": True}, TrustContextKind.UNKNOWN),
    ],
)
def test_classify_trust_context(kwargs: dict[str, bool], kind: TrustContextKind) -> None:
    context = classify_trust_context(**kwargs, participant_count=3)

    assert context.kind == kind
    assert context.participant_count == 3


def test_service_parse_journals_label_and_confidence() -> None:
    repo = InMemoryJournalRepository()
    service = DefaultIntentRouterService(
        journal=DefaultAuditJournalService(settings=AuditJournalSettings(), repository=repo)
    )

    parsed = service.parse(message="disable polymarket")

    (event,) = repo.events()
    assert parsed.intent == IntentLabel.POLICY_TOGGLE_INTEGRATION
    assert event.category == JournalCategory.INTENT
    assert event.action == "policy_toggle_integration"
    assert event.status == JournalStatus.SUCCESS
    assert event.details == {"confidence": 0.75}


def test_service_parse_rejects_blank_message() -> None:
    service = DefaultIntentRouterService(
        journal=DefaultAuditJournalService(
            settings=AuditJournalSettings(), repository=InMemoryJournalRepository()
        )
    )

    with pytest.raises(ValueError):
        service.parse(message="   ")
