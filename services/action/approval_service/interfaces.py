"""Transport-neutral protocol interfaces for Approval Service storage."""

from __future__ import annotations

from typing import Protocol

from services.action.approval_service.domain import ApprovalRequest, ApprovalStatus


class ApprovalRepository(Protocol):
    """Protocol for the process-local approval registry."""

    def insert(self, *, request: ApprovalRequest) -> None:
        """Store one new request; ids and nonces must be unused."""

    def get(self, *, request_id: str) -> ApprovalRequest | None:
        """Return one request by id."""

    def find_by_nonce(self, *, nonce: str) -> ApprovalRequest | None:
        """Return the request holding ``nonce`` (canonical form)."""

    def list_all(self) -> tuple[ApprovalRequest, ...]:
        """Return every request in insertion order."""

    def compare_and_set_status(
        self,
        *,
        request_id: str,
        expected: ApprovalStatus,
        status: ApprovalStatus,
    ) -> ApprovalRequest | None:
        """Transition status only from ``expected``; return the updated request."""
