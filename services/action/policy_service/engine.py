"""Pure policy decision evaluator.

Checks run in a fixed order and the first failing check names the reason, so
an unconfigured account always reports ``DENY_NOT_CONFIGURED`` even when later
checks would also fail. Callers journal the outcome.
"""

from __future__ import annotations

from services.action.policy_service.domain import (
    ActionKind,
    CapabilitySnapshot,
    PolicyDecision,
    PolicyMode,
    ReasonCode,
)


def parse_action_kind(raw: object) -> ActionKind:
    """Map command input onto ``ActionKind``; unknown values read as ``read``."""
    if isinstance(raw, ActionKind):
        return raw
    try:
        return ActionKind(str(raw).strip())
    except ValueError:
        return ActionKind.READ


def evaluate_policy_action(
    snapshot: CapabilitySnapshot,
    kind: ActionKind,
    integration: str | None = None,
) -> PolicyDecision:
    """Return the allow/deny decision for one action on one snapshot."""
    if kind == ActionKind.READ:
        return _allow()
    if not snapshot.configured:
        return _deny(ReasonCode.DENY_NOT_CONFIGURED)
    if not snapshot.wallet_context:
        return _deny(ReasonCode.DENY_WALLET_CONTEXT_MISSING)
    if snapshot.policy_mode == PolicyMode.READ_ONLY:
        return _deny(ReasonCode.DENY_READ_ONLY_MODE)
    if integration:
        capability = snapshot.integrations.get(integration)
        if capability is not None and not capability.ready:
            return _deny(ReasonCode.DENY_INTEGRATION_DISABLED)
    return _allow()


def _allow() -> PolicyDecision:
    return PolicyDecision(allow=True, reason_code=ReasonCode.ALLOW)


def _deny(reason_code: ReasonCode) -> PolicyDecision:
    return PolicyDecision(allow=False, reason_code=reason_code)
