"""Domain contracts for intent parsing and trust-context classification."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IntentLabel(str, Enum):
    """Intent labels forwarded to the command layer."""

    POLICY_SET_LIMITS = "policy_set_limits"
    POLICY_SET_MODE = "policy_set_mode"
    POLICY_TOGGLE_INTEGRATION = "policy_toggle_integration"
    APPROVAL_PHRASE = "approval_phrase"
    CAPABILITIES_QUERY = "capabilities_query"
    UNKNOWN = "unknown"


class ParsedIntent(BaseModel):
    """Best-effort classification of one free-text message."""

    model_config = ConfigDict(frozen=True)

    intent: IntentLabel
    params: dict[str, str | float | bool] = Field(default_factory=dict)
    confidence: float = Field(ge=0.0, le=1.0)


class TrustContextKind(str, Enum):
    """Conversation setting a message arrived in."""

    OWNER_DM = "owner_dm"
    OWNER_GROUP = "owner_group"
    SHARED_GROUP = "shared_group"
    AGENT_ROOM = "agent_room"
    UNKNOWN = "unknown"


class TrustContext(BaseModel):
    """Classified trust context for one conversation."""

    model_config = ConfigDict(frozen=True)

    kind: TrustContextKind
    owner_present: bool
    participant_count: int | None = Field(default=None, ge=0)
