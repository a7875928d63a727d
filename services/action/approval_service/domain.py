"""Domain contracts for approval requests and their lifecycle outcomes."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Uppercase letters and digits without the look-alikes 0/O, 1/I/L.
NONCE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"


class ApprovalStatus(str, Enum):
    """Lifecycle state of one approval request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING


class ApprovalReasonCode(str, Enum):
    """Reason codes returned by consume/reject, in evaluation order."""

    ALLOW = "ALLOW"
    DENY_NOT_FOUND = "DENY_NOT_FOUND"
    DENY_ALREADY_CONSUMED = "DENY_ALREADY_CONSUMED"
    DENY_EXPIRED = "DENY_EXPIRED"
    DENY_NOT_REQUESTER = "DENY_NOT_REQUESTER"
    DENY_ACTOR_MISSING = "DENY_ACTOR_MISSING"


class PhraseOperation(str, Enum):
    """Operation requested by an approval phrase."""

    APPROVE = "approve"
    REJECT = "reject"


class ApprovalRequest(BaseModel):
    """One in-flight or terminal approval request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    nonce: str = Field(min_length=1)
    account_id: str = Field(min_length=1)
    action: str = Field(min_length=1)
    requested_by: str = Field(min_length=1)
    payload_hash: str = Field(min_length=1)
    created_at: datetime
    expires_at: datetime
    status: ApprovalStatus = ApprovalStatus.PENDING

    @model_validator(mode="after")
    def _validate_window(self) -> "ApprovalRequest":
        """Require ``expires_at`` not to precede ``created_at``."""
        if self.expires_at < self.created_at:
            raise ValueError("expires_at must not precede created_at")
        return self

    def is_due(self, now: datetime) -> bool:
        """Return True when a PENDING request has reached its expiry time."""
        return self.status == ApprovalStatus.PENDING and self.expires_at <= now


class ApprovalOutcome(BaseModel):
    """Result of one consume/reject attempt."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    reason_code: ApprovalReasonCode
    request: ApprovalRequest | None = None

    @model_validator(mode="after")
    def _ok_matches_reason(self) -> "ApprovalOutcome":
        if self.ok != (self.reason_code == ApprovalReasonCode.ALLOW):
            raise ValueError("ok must be True exactly when reason_code is ALLOW")
        return self


class ParsedApprovalPhrase(BaseModel):
    """Operation, nonce and explicit actor recognized in free text."""

    model_config = ConfigDict(frozen=True)

    operation: PhraseOperation
    nonce: str = Field(min_length=1)
    actor_user_id: str | None = None


def normalize_nonce(value: str | None) -> str:
    """Return the canonical (trimmed, uppercase) form of a typed nonce."""
    return (value or "").strip().upper()


def utc_now() -> datetime:
    """Return timezone-aware UTC now timestamp."""
    return datetime.now(UTC)
