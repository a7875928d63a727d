"""Concrete Approval Service with a single lock around the registry."""

from __future__ import annotations

import math
import secrets
import threading
from datetime import datetime, timedelta
from typing import Callable

from packages.warden_shared.config import WardenSettings
from packages.warden_shared.ids import generate_ulid_str
from packages.warden_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_instrumented,
)
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
    PhraseOperation,
    normalize_nonce,
    utc_now,
)
from services.action.approval_service.interfaces import ApprovalRepository
from services.action.approval_service.phrase import parse_approval_phrase
from services.action.approval_service.service import ApprovalService
from services.state.audit_journal.domain import JournalCategory, JournalStatus
from services.state.audit_journal.service import (
    AuditJournalService,
    build_audit_journal_service,
)

_LOGGER = get_logger(__name__)

NonceFactory = Callable[[int], str]


def random_nonce(length: int) -> str:
    """Return a random nonce drawn from the unambiguous alphabet."""
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(length))


class DefaultApprovalService(ApprovalService):
    """Approval lifecycle manager owning one volatile registry.

    Every operation, including the lazy PENDING -> EXPIRED flip observed on
    reads, runs under one re-entrant lock, and status changes go through the
    repository's compare-and-set.
    """

    def __init__(
        self,
        *,
        settings: ApprovalServiceSettings,
        journal: AuditJournalService,
        repository: ApprovalRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
        nonce_factory: NonceFactory = random_nonce,
    ) -> None:
        self._settings = settings
        self._journal = journal
        self._repository = repository or InMemoryApprovalRepository()
        self._clock = clock
        self._nonce_factory = nonce_factory
        self._lock = threading.RLock()

    @classmethod
    def from_settings(
        cls,
        settings: WardenSettings,
        *,
        journal: AuditJournalService | None = None,
    ) -> "DefaultApprovalService":
        """Build approval service from typed root runtime settings."""
        return cls(
            settings=resolve_approval_service_settings(settings),
            journal=journal or build_audit_journal_service(settings=settings),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("account_id", "requested_by"),
    )
    def create(
        self,
        *,
        account_id: str,
        action: str,
        requested_by: str,
        payload_hash: str,
        ttl_seconds: float | None = None,
    ) -> ApprovalRequest:
        ttl = self._settings.approval_ttl_seconds if ttl_seconds is None else ttl_seconds
        if not math.isfinite(ttl) or ttl < 0:
            raise ValueError("ttl_seconds must be a finite number >= 0")
        for name, value in (
            ("account_id", account_id),
            ("action", action),
            ("requested_by", requested_by),
            ("payload_hash", payload_hash),
        ):
            if value is None or value.strip() == "":
                raise ValueError(f"{name} is required")

        with self._lock:
            now = self._clock()
            try:
                expires_at = now + timedelta(seconds=ttl)
            except OverflowError as exc:
                raise ValueError(f"ttl_seconds is too large: {ttl}") from exc
            request = ApprovalRequest(
                id=generate_ulid_str(),
                nonce=self._allocate_nonce(),
                account_id=account_id,
                action=action,
                requested_by=requested_by,
                payload_hash=payload_hash,
                created_at=now,
                expires_at=expires_at,
            )
            self._repository.insert(request=request)
            self._journal.record(
                category=JournalCategory.APPROVAL,
                action="create",
                status=JournalStatus.PENDING,
                account_id=request.account_id,
                actor_user_id=request.requested_by,
                details={
                    "id": request.id,
                    "nonce": request.nonce,
                    "payloadHash": request.payload_hash,
                    "expiresAt": request.expires_at.isoformat(),
                },
            )
            return request

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("request_id",),
    )
    def lookup(self, *, request_id: str) -> ApprovalRequest | None:
        with self._lock:
            request = self._repository.get(request_id=request_id)
            if request is None:
                return None
            return self._expire_if_due(request, self._clock())

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("nonce", "actor_user_id"),
    )
    def consume(self, *, nonce: str, actor_user_id: str) -> ApprovalOutcome:
        return self._transition(
            nonce=nonce,
            actor_user_id=actor_user_id,
            target=ApprovalStatus.APPROVED,
            journal_action="consume",
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("nonce", "actor_user_id"),
    )
    def reject(self, *, nonce: str, actor_user_id: str) -> ApprovalOutcome:
        return self._transition(
            nonce=nonce,
            actor_user_id=actor_user_id,
            target=ApprovalStatus.REJECTED,
            journal_action="reject",
        )

    @public_api_instrumented(logger=_LOGGER, component_id=SERVICE_COMPONENT_ID)
    def list(self, *, limit: int | None = None) -> tuple[ApprovalRequest, ...]:
        resolved = limit if limit is not None and limit > 0 else None
        if resolved is None:
            resolved = self._settings.list_limit_default

        with self._lock:
            now = self._clock()
            # Reversed insertion order breaks creation-time ties newest first.
            ordered = sorted(
                reversed(self._repository.list_all()),
                key=lambda item: item.created_at,
                reverse=True,
            )
            return tuple(
                self._expire_if_due(request, now) for request in ordered[:resolved]
            )

    @public_api_instrumented(logger=_LOGGER, component_id=SERVICE_COMPONENT_ID)
    def apply_phrase(self, *, text: str) -> ApprovalOutcome:
        parsed = parse_approval_phrase(text)
        if parsed is None:
            raise ValueError(
                "expected 'APPROVE TX <nonce>' or 'REJECT TX <nonce>' "
                "with --actor-user-id <id>"
            )

        return self._transition(
            nonce=parsed.nonce,
            actor_user_id=parsed.actor_user_id,
            target=(
                ApprovalStatus.APPROVED
                if parsed.operation == PhraseOperation.APPROVE
                else ApprovalStatus.REJECTED
            ),
            journal_action=f"phrase_{parsed.operation.value}",
        )

    def _transition(
        self,
        *,
        nonce: str,
        actor_user_id: str | None,
        target: ApprovalStatus,
        journal_action: str,
    ) -> ApprovalOutcome:
        """Evaluate the consume/reject precondition chain and journal the result.

        A blank actor is denied before the registry is consulted; the
        requester is never inferred.
        """
        canonical = normalize_nonce(nonce)
        if actor_user_id is None or actor_user_id.strip() == "":
            outcome = ApprovalOutcome(
                ok=False, reason_code=ApprovalReasonCode.DENY_ACTOR_MISSING
            )
            self._journal.record(
                category=JournalCategory.APPROVAL,
                action=journal_action,
                status=JournalStatus.DENY,
                reason_code=outcome.reason_code.value,
                details={"nonce": canonical},
            )
            return outcome

        with self._lock:
            request = (
                self._repository.find_by_nonce(nonce=canonical) if canonical else None
            )
            outcome = self._evaluate(
                request=request, actor_user_id=actor_user_id, target=target
            )
            subject = outcome.request or request
            details: dict[str, str] = {"nonce": canonical}
            if subject is not None:
                details["requestId"] = subject.id
            self._journal.record(
                category=JournalCategory.APPROVAL,
                action=journal_action,
                status=JournalStatus.SUCCESS if outcome.ok else JournalStatus.DENY,
                account_id=None if subject is None else subject.account_id,
                actor_user_id=actor_user_id,
                reason_code=outcome.reason_code.value,
                details=details,
            )
            return outcome

    def _evaluate(
        self,
        *,
        request: ApprovalRequest | None,
        actor_user_id: str,
        target: ApprovalStatus,
    ) -> ApprovalOutcome:
        if request is None:
            return ApprovalOutcome(ok=False, reason_code=ApprovalReasonCode.DENY_NOT_FOUND)
        if request.status.is_terminal:
            return ApprovalOutcome(
                ok=False,
                reason_code=ApprovalReasonCode.DENY_ALREADY_CONSUMED,
                request=request,
            )
        now = self._clock()
        if request.is_due(now):
            return ApprovalOutcome(
                ok=False,
                reason_code=ApprovalReasonCode.DENY_EXPIRED,
                request=self._expire_if_due(request, now),
            )
        if actor_user_id != request.requested_by:
            return ApprovalOutcome(
                ok=False,
                reason_code=ApprovalReasonCode.DENY_NOT_REQUESTER,
                request=request,
            )

        updated = self._repository.compare_and_set_status(
            request_id=request.id,
            expected=ApprovalStatus.PENDING,
            status=target,
        )
        if updated is None:
            return ApprovalOutcome(
                ok=False,
                reason_code=ApprovalReasonCode.DENY_ALREADY_CONSUMED,
                request=self._repository.get(request_id=request.id),
            )
        return ApprovalOutcome(
            ok=True, reason_code=ApprovalReasonCode.ALLOW, request=updated
        )

    def _expire_if_due(self, request: ApprovalRequest, now: datetime) -> ApprovalRequest:
        """Persist and journal the PENDING -> EXPIRED flip when TTL has passed."""
        if not request.is_due(now):
            return request
        expired = self._repository.compare_and_set_status(
            request_id=request.id,
            expected=ApprovalStatus.PENDING,
            status=ApprovalStatus.EXPIRED,
        )
        if expired is None:
            return self._repository.get(request_id=request.id) or request
        self._journal.record(
            category=JournalCategory.APPROVAL,
            action="expire",
            status=JournalStatus.FAILED,
            account_id=expired.account_id,
            actor_user_id=expired.requested_by,
            reason_code=ApprovalReasonCode.DENY_EXPIRED.value,
            details={"id": expired.id, "nonce": expired.nonce},
        )
        return expired

    def _allocate_nonce(self) -> str:
        """Return a nonce held by no request in the registry.

        After ``nonce_max_attempts`` collisions the length grows by one.
        """
        length = self._settings.nonce_length
        while True:
            for _ in range(self._settings.nonce_max_attempts):
                candidate = normalize_nonce(self._nonce_factory(length))
                if candidate and self._repository.find_by_nonce(nonce=candidate) is None:
                    return candidate
            with log_context(
                {fields.COMPONENT_ID: SERVICE_COMPONENT_ID, fields.NONCE_LENGTH: length}
            ):
                _LOGGER.warning("Nonce collisions exhausted attempts; growing length")
            length += 1
