"""Domain contracts for channel configuration, policy snapshots and decisions.

Input configuration models mirror the camelCase keys operators write under the
``channel`` config subtree. Snapshot models are derived, immutable and
secret-free; they are rebuilt from configuration on every call.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

DEFAULT_ACCOUNT_ID = "default"
KNOWN_INTEGRATIONS: tuple[str, ...] = ("polymarket", "registry8004", "x402")


class PolicyMode(str, Enum):
    """Authorization posture for mutating actions on one account."""

    READ_ONLY = "READ_ONLY"
    CONFIRM_ALWAYS = "CONFIRM_ALWAYS"
    BOUNDED_AUTO = "BOUNDED_AUTO"


class ActionKind(str, Enum):
    """Action categories understood by the decision evaluator."""

    READ = "read"
    EXECUTE_TX = "executeTx"
    PAY = "pay"
    DELEGATE = "delegate"


class ReasonCode(str, Enum):
    """Machine-readable explanation attached to every policy outcome."""

    ALLOW = "ALLOW"
    DENY_NOT_CONFIGURED = "DENY_NOT_CONFIGURED"
    DENY_WALLET_CONTEXT_MISSING = "DENY_WALLET_CONTEXT_MISSING"
    DENY_READ_ONLY_MODE = "DENY_READ_ONLY_MODE"
    DENY_INTEGRATION_DISABLED = "DENY_INTEGRATION_DISABLED"
    DENY_NOT_OWNER = "DENY_NOT_OWNER"


def _limit_or_none(value: object) -> float | None:
    """Return a finite non-negative number, else ``None`` (unset)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return float(value)


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class IntegrationConfig(_ConfigModel):
    """Raw per-integration toggles; unset values fall back at snapshot time."""

    enabled: bool | None = None
    exec_enabled: bool | None = None
    pay_enabled: bool | None = None


class PolicyLimitsConfig(_ConfigModel):
    """Raw spend limits in USD."""

    max_per_tx_usd: float | None = None
    max_per_day_usd: float | None = None

    @field_validator("max_per_tx_usd", "max_per_day_usd", mode="before")
    @classmethod
    def _normalize_limit(cls, value: object) -> float | None:
        return _limit_or_none(value)


class PolicyConfig(_ConfigModel):
    """Raw policy block as written at channel or account level.

    Unknown keys are kept so a rewritten policy fragment preserves them.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    mode: Any = None
    allowed_owner_user_ids: tuple[str, ...] = ()
    limits: PolicyLimitsConfig = Field(default_factory=PolicyLimitsConfig)
    integrations: dict[str, IntegrationConfig] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _drop_null_blocks(cls, value: object) -> object:
        """Treat explicit YAML nulls in nested blocks as absent."""
        if not isinstance(value, dict):
            return value
        cleaned = {
            key: item
            for key, item in value.items()
            if not (
                item is None
                and key
                in {
                    "allowedOwnerUserIds",
                    "allowed_owner_user_ids",
                    "limits",
                    "integrations",
                }
            )
        }
        integrations = cleaned.get("integrations")
        if isinstance(integrations, dict):
            cleaned["integrations"] = {
                name: {} if item is None else item for name, item in integrations.items()
            }
        return cleaned

    def is_empty(self) -> bool:
        """Return True when the block declared no keys at all."""
        return not self.model_fields_set and not self.model_extra


class AccountConfig(_ConfigModel):
    """Per-account overrides; ``None`` means inherit from channel level."""

    enabled: bool | None = None
    name: str | None = None
    app_private_data: SecretStr | None = None
    jwt_secret: SecretStr | None = None
    allow_from: tuple[str, ...] | None = None
    webhook_path: str | None = None
    policy: PolicyConfig | None = None


class ChannelConfig(_ConfigModel):
    """Channel-wide defaults plus the declared accounts, in declaration order."""

    enabled: bool | None = None
    app_private_data: SecretStr | None = None
    jwt_secret: SecretStr | None = None
    allow_from: tuple[str, ...] | None = None
    webhook_path: str | None = None
    policy: PolicyConfig | None = None
    accounts: dict[str, AccountConfig] = Field(default_factory=dict)

    @field_validator("accounts", mode="before")
    @classmethod
    def _accounts_or_empty(cls, value: object) -> object:
        """Treat null maps and empty account bodies as declared but bare."""
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: {} if item is None else item for key, item in value.items()}
        return value


class ResolvedAccount(BaseModel):
    """Effective account view after account-over-channel field precedence."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    enabled: bool
    configured: bool
    name: str | None = None
    allow_from: tuple[str, ...] = ()
    webhook_path: str | None = None
    app_private_data: SecretStr | None = Field(default=None, repr=False)
    jwt_secret: SecretStr | None = Field(default=None, repr=False)


class PolicyLimits(BaseModel):
    """Normalized spend limits; ``None`` means unset."""

    model_config = ConfigDict(frozen=True)

    max_per_tx_usd: float | None = None
    max_per_day_usd: float | None = None


class IntegrationPolicy(BaseModel):
    """Normalized integration toggles."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    exec_enabled: bool = False
    pay_enabled: bool = False


class PolicySnapshot(BaseModel):
    """Immutable effective policy for one account."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    mode: PolicyMode
    owner_user_ids: tuple[str, ...] = ()
    limits: PolicyLimits = Field(default_factory=PolicyLimits)
    integrations: dict[str, IntegrationPolicy] = Field(default_factory=dict)


class IntegrationCapability(BaseModel):
    """Decision-ready integration state with exec/pay gated by signing."""

    model_config = ConfigDict(frozen=True)

    ready: bool
    exec_enabled: bool = False
    pay_enabled: bool = False


class CapabilitySnapshot(BaseModel):
    """Secret-free summary of what one account may currently do."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    channel_enabled: bool
    configured: bool
    wallet_context: bool
    can_sign: bool
    policy_mode: PolicyMode
    owner_count: int = Field(ge=0)
    webhook_path: str
    integrations: dict[str, IntegrationCapability] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _enforce_signing_gates(self) -> "CapabilitySnapshot":
        """Reject snapshots that grant more than their wallet context allows."""
        if self.can_sign and not self.wallet_context:
            raise ValueError("can_sign requires wallet_context")
        if self.can_sign and self.policy_mode == PolicyMode.READ_ONLY:
            raise ValueError("can_sign is not allowed in READ_ONLY mode")
        for name, integration in self.integrations.items():
            if (integration.exec_enabled or integration.pay_enabled) and not self.can_sign:
                raise ValueError(f"integration {name} cannot be enabled without can_sign")
        return self


class PolicyDecision(BaseModel):
    """Outcome of one evaluated action."""

    model_config = ConfigDict(frozen=True)

    allow: bool
    reason_code: ReasonCode

    @model_validator(mode="after")
    def _allow_matches_reason(self) -> "PolicyDecision":
        """Keep ``allow`` consistent with the reason code."""
        if self.allow != (self.reason_code == ReasonCode.ALLOW):
            raise ValueError("allow must be True exactly when reason_code is ALLOW")
        return self


class IntegrationToggle(BaseModel):
    """Requested change to one integration's toggles."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    enabled: bool | None = None
    exec_enabled: bool | None = None
    pay_enabled: bool | None = None

    @model_validator(mode="after")
    def _require_change(self) -> "IntegrationToggle":
        if self.enabled is None and self.exec_enabled is None and self.pay_enabled is None:
            raise ValueError("integration toggle must set at least one flag")
        return self


class PolicyUpdate(BaseModel):
    """Owner-gated policy mutation request."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    mode: PolicyMode | None = None
    max_per_tx_usd: float | None = Field(default=None, ge=0)
    max_per_day_usd: float | None = Field(default=None, ge=0)
    integrations: dict[str, IntegrationToggle] = Field(default_factory=dict)
    add_owner_user_ids: tuple[str, ...] = ()
    remove_owner_user_ids: tuple[str, ...] = ()

    @field_validator("mode", mode="before")
    @classmethod
    def _upper_mode(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("add_owner_user_ids", "remove_owner_user_ids")
    @classmethod
    def _non_blank_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        stripped = tuple(item.strip() for item in value)
        if any(item == "" for item in stripped):
            raise ValueError("owner user ids must be non-empty")
        return stripped

    @model_validator(mode="after")
    def _require_change(self) -> "PolicyUpdate":
        if (
            self.mode is None
            and self.max_per_tx_usd is None
            and self.max_per_day_usd is None
            and not self.integrations
            and not self.add_owner_user_ids
            and not self.remove_owner_user_ids
        ):
            raise ValueError("policy update must change at least one field")
        return self


class PolicyChangeResult(BaseModel):
    """Accepted policy change plus the fragment an external writer persists."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    actor_user_id: str
    changes: tuple[str, ...]
    fragment: dict[str, Any]


class CapabilityReport(BaseModel):
    """Capability snapshot plus sample decisions for the sensitive actions."""

    model_config = ConfigDict(frozen=True)

    snapshot: CapabilitySnapshot
    decisions: dict[str, PolicyDecision]


class AccountHealth(BaseModel):
    """Secret-free diagnostics for one account."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    enabled: bool
    configured: bool
    webhook_path: str
    allow_from_count: int


class ChannelHealthReport(BaseModel):
    """Secret-free diagnostics for the whole channel."""

    model_config = ConfigDict(frozen=True)

    channel_enabled: bool
    account_count: int
    accounts: tuple[AccountHealth, ...]
