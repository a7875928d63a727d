"""Authoritative in-process Python API for Intent Router."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.warden_shared.config import WardenSettings
from services.action.intent_router.domain import ParsedIntent, TrustContext
from services.state.audit_journal.service import AuditJournalService


class IntentRouterService(ABC):
    """Public API for labeling free text and classifying trust context."""

    @abstractmethod
    def parse(self, *, message: str) -> ParsedIntent:
        """Classify one message and journal the label."""

    @abstractmethod
    def classify_context(
        self,
        *,
        is_dm: bool = False,
        owner_present: bool = False,
        participants_are_agents_only: bool = False,
        participant_count: int | None = None,
    ) -> TrustContext:
        """Classify the conversation a message arrived in."""


def build_intent_router_service(
    *, settings: WardenSettings, journal: AuditJournalService
) -> IntentRouterService:
    """Build default Intent Router implementation."""
    from services.action.intent_router.implementation import DefaultIntentRouterService

    del settings
    return DefaultIntentRouterService(journal=journal)
