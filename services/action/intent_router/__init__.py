"""Intent Router package exports."""

from services.action.intent_router.classifier import (
    classify_trust_context,
    parse_intent,
)
from services.action.intent_router.component import SERVICE_COMPONENT_ID
from services.action.intent_router.domain import (
    IntentLabel,
    ParsedIntent,
    TrustContext,
    TrustContextKind,
)
from services.action.intent_router.implementation import DefaultIntentRouterService
from services.action.intent_router.service import (
    IntentRouterService,
    build_intent_router_service,
)

__all__ = [
    "DefaultIntentRouterService",
    "IntentLabel",
    "IntentRouterService",
    "ParsedIntent",
    "SERVICE_COMPONENT_ID",
    "TrustContext",
    "TrustContextKind",
    "build_intent_router_service",
    "classify_trust_context",
    "parse_intent",
]
