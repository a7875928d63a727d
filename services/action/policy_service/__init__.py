"""Policy Service package exports."""

from services.action.policy_service.accounts import (
    list_account_ids,
    resolve_account,
    resolve_policy_config,
)
from services.action.policy_service.capabilities import (
    build_capability_snapshot,
    build_policy_snapshot,
    normalize_policy_mode,
    normalize_webhook_path,
)
from services.action.policy_service.component import SERVICE_COMPONENT_ID
from services.action.policy_service.config import (
    PolicyServiceSettings,
    resolve_policy_service_settings,
)
from services.action.policy_service.domain import (
    DEFAULT_ACCOUNT_ID,
    KNOWN_INTEGRATIONS,
    ActionKind,
    CapabilityReport,
    CapabilitySnapshot,
    ChannelConfig,
    ChannelHealthReport,
    IntegrationToggle,
    PolicyChangeResult,
    PolicyDecision,
    PolicyMode,
    PolicySnapshot,
    PolicyUpdate,
    ReasonCode,
    ResolvedAccount,
)
from services.action.policy_service.engine import evaluate_policy_action, parse_action_kind
from services.action.policy_service.implementation import (
    DefaultPolicyService,
    channel_config_from_settings,
)
from services.action.policy_service.owner import build_policy_fragment, is_owner
from services.action.policy_service.service import PolicyService, build_policy_service

__all__ = [
    "ActionKind",
    "CapabilityReport",
    "CapabilitySnapshot",
    "ChannelConfig",
    "ChannelHealthReport",
    "DEFAULT_ACCOUNT_ID",
    "DefaultPolicyService",
    "IntegrationToggle",
    "KNOWN_INTEGRATIONS",
    "PolicyChangeResult",
    "PolicyDecision",
    "PolicyMode",
    "PolicyService",
    "PolicyServiceSettings",
    "PolicySnapshot",
    "PolicyUpdate",
    "ReasonCode",
    "ResolvedAccount",
    "SERVICE_COMPONENT_ID",
    "build_capability_snapshot",
    "build_policy_fragment",
    "build_policy_service",
    "build_policy_snapshot",
    "channel_config_from_settings",
    "evaluate_policy_action",
    "is_owner",
    "list_account_ids",
    "normalize_policy_mode",
    "normalize_webhook_path",
    "parse_action_kind",
    "resolve_account",
    "resolve_policy_config",
    "resolve_policy_service_settings",
]
