"""Approval Service package exports."""

from services.action.approval_service.component import SERVICE_COMPONENT_ID
from services.action.approval_service.config import (
    ApprovalServiceSettings,
    resolve_approval_service_settings,
)
from services.action.approval_service.data.repository import (
    InMemoryApprovalRepository,
)
from services.action.approval_service.domain import (
    NONCE_ALPHABET,
    ApprovalOutcome,
    ApprovalReasonCode,
    ApprovalRequest,
    ApprovalStatus,
    ParsedApprovalPhrase,
    PhraseOperation,
    normalize_nonce,
)
from services.action.approval_service.implementation import (
    DefaultApprovalService,
    random_nonce,
)
from services.action.approval_service.interfaces import ApprovalRepository
from services.action.approval_service.phrase import parse_approval_phrase
from services.action.approval_service.service import (
    ApprovalService,
    build_approval_service,
)

__all__ = [
    "ApprovalOutcome",
    "ApprovalReasonCode",
    "ApprovalRepository",
    "ApprovalRequest",
    "ApprovalService",
    "ApprovalServiceSettings",
    "ApprovalStatus",
    "DefaultApprovalService",
    "InMemoryApprovalRepository",
    "NONCE_ALPHABET",
    "ParsedApprovalPhrase",
    "PhraseOperation",
    "SERVICE_COMPONENT_ID",
    "build_approval_service",
    "normalize_nonce",
    "parse_approval_phrase",
    "random_nonce",
    "resolve_approval_service_settings",
]
