"""Concrete Intent Router over the regex classifiers."""

from __future__ import annotations

from packages.warden_shared.logging import get_logger, public_api_instrumented
from services.action.intent_router.classifier import (
    classify_trust_context,
    parse_intent,
)
from services.action.intent_router.component import SERVICE_COMPONENT_ID
from services.action.intent_router.domain import ParsedIntent, TrustContext
from services.action.intent_router.service import IntentRouterService
from services.state.audit_journal.domain import JournalCategory, JournalStatus
from services.state.audit_journal.service import AuditJournalService

_LOGGER = get_logger(__name__)


class DefaultIntentRouterService(IntentRouterService):
    """Intent router that journals every parsed label with its confidence."""

    def __init__(self, *, journal: AuditJournalService) -> None:
        self._journal = journal

    @public_api_instrumented(logger=_LOGGER, component_id=SERVICE_COMPONENT_ID)
    def parse(self, *, message: str) -> ParsedIntent:
        if message is None or message.strip() == "":
            raise ValueError("message is required")
        parsed = parse_intent(message)
        self._journal.record(
            category=JournalCategory.INTENT,
            action=parsed.intent.value,
            status=JournalStatus.SUCCESS,
            details={"confidence": parsed.confidence},
        )
        return parsed

    @public_api_instrumented(logger=_LOGGER, component_id=SERVICE_COMPONENT_ID)
    def classify_context(
        self,
        *,
        is_dm: bool = False,
        owner_present: bool = False,
        participants_are_agents_only: bool = False,
        participant_count: int | None = None,
    ) -> TrustContext:
        return classify_trust_context(
            is_dm=is_dm,
            owner_present=owner_present,
            participants_are_agents_only=participants_are_agents_only,
            participant_count=participant_count,
        )
