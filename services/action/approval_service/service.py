"""Authoritative in-process Python API for Approval Service."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.warden_shared.config import WardenSettings
from services.action.approval_service.domain import ApprovalOutcome, ApprovalRequest
from services.state.audit_journal.service import AuditJournalService


class ApprovalService(ABC):
    """Public API for the nonce-based approval lifecycle.

    Business denials are returned as ``ApprovalOutcome`` values. Invalid input
    raises ``ValueError``; journal I/O failures raise ``JournalWriteError``
    after the state transition has been applied.
    """

    @abstractmethod
    def create(
        self,
        *,
        account_id: str,
        action: str,
        requested_by: str,
        payload_hash: str,
        ttl_seconds: float | None = None,
    ) -> ApprovalRequest:
        """Create and journal one PENDING request with a fresh nonce."""

    @abstractmethod
    def lookup(self, *, request_id: str) -> ApprovalRequest | None:
        """Return one request by id after applying lazy expiry."""

    @abstractmethod
    def consume(self, *, nonce: str, actor_user_id: str) -> ApprovalOutcome:
        """Approve the request holding ``nonce`` on behalf of its requester."""

    @abstractmethod
    def reject(self, *, nonce: str, actor_user_id: str) -> ApprovalOutcome:
        """Reject the request holding ``nonce`` on behalf of its requester."""

    @abstractmethod
    def list(self, *, limit: int | None = None) -> tuple[ApprovalRequest, ...]:
        """Return requests most-recent-first, with lazy expiry applied."""

    @abstractmethod
    def apply_phrase(self, *, text: str) -> ApprovalOutcome:
        """Parse one approval phrase and dispatch it to consume or reject."""


def build_approval_service(
    *, settings: WardenSettings, journal: AuditJournalService
) -> ApprovalService:
    """Build default Approval Service implementation from typed settings."""
    from services.action.approval_service.implementation import (
        DefaultApprovalService,
    )

    return DefaultApprovalService.from_settings(settings, journal=journal)
