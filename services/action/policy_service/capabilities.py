"""Capability and policy snapshot builders.

Snapshots are deterministic functions of the channel configuration already in
memory. Mode normalization fails safe: anything unrecognized is READ_ONLY.
"""

from __future__ import annotations

from services.action.policy_service.accounts import (
    resolve_account,
    resolve_policy_config,
)
from services.action.policy_service.config import DEFAULT_WEBHOOK_PATH_TEMPLATE
from services.action.policy_service.domain import (
    DEFAULT_ACCOUNT_ID,
    KNOWN_INTEGRATIONS,
    CapabilitySnapshot,
    ChannelConfig,
    IntegrationCapability,
    IntegrationConfig,
    IntegrationPolicy,
    PolicyLimits,
    PolicyMode,
    PolicySnapshot,
)


def normalize_policy_mode(value: object) -> PolicyMode:
    """Map raw mode input onto ``PolicyMode``, case-insensitively."""
    if isinstance(value, PolicyMode):
        return value
    if not isinstance(value, str):
        return PolicyMode.READ_ONLY
    try:
        return PolicyMode(value.strip().upper())
    except ValueError:
        return PolicyMode.READ_ONLY


def normalize_webhook_path(
    account_id: str,
    webhook_path: str | None,
    *,
    template: str = DEFAULT_WEBHOOK_PATH_TEMPLATE,
) -> str:
    """Return a rooted webhook path, defaulting from ``template`` when blank."""
    configured = (webhook_path or "").strip()
    if not configured:
        return template.format(account_id=account_id)
    return configured if configured.startswith("/") else f"/{configured}"


def build_policy_snapshot(
    channel: ChannelConfig, account_id: str | None = None
) -> PolicySnapshot:
    """Build the effective policy for one account."""
    resolved_id = account_id or DEFAULT_ACCOUNT_ID
    policy = resolve_policy_config(channel, resolved_id)

    names = list(KNOWN_INTEGRATIONS)
    names.extend(name for name in policy.integrations if name not in KNOWN_INTEGRATIONS)
    integrations: dict[str, IntegrationPolicy] = {}
    for name in names:
        raw = policy.integrations.get(name) or IntegrationConfig()
        integrations[name] = IntegrationPolicy(
            enabled=raw.enabled is not False,
            exec_enabled=bool(raw.exec_enabled),
            pay_enabled=bool(raw.pay_enabled),
        )

    return PolicySnapshot(
        account_id=resolved_id,
        mode=normalize_policy_mode(policy.mode),
        owner_user_ids=policy.allowed_owner_user_ids,
        limits=PolicyLimits(
            max_per_tx_usd=policy.limits.max_per_tx_usd,
            max_per_day_usd=policy.limits.max_per_day_usd,
        ),
        integrations=integrations,
    )


def build_capability_snapshot(
    channel: ChannelConfig,
    account_id: str | None = None,
    *,
    webhook_path_template: str = DEFAULT_WEBHOOK_PATH_TEMPLATE,
) -> CapabilitySnapshot:
    """Build the secret-free capability summary for one account."""
    resolved_id = account_id or DEFAULT_ACCOUNT_ID
    account = resolve_account(channel, resolved_id)
    policy = build_policy_snapshot(channel, resolved_id)

    wallet_context = account.configured
    can_sign = wallet_context and policy.mode != PolicyMode.READ_ONLY

    return CapabilitySnapshot(
        account_id=resolved_id,
        channel_enabled=account.enabled,
        configured=account.configured,
        wallet_context=wallet_context,
        can_sign=can_sign,
        policy_mode=policy.mode,
        owner_count=len(policy.owner_user_ids),
        webhook_path=normalize_webhook_path(
            resolved_id, account.webhook_path, template=webhook_path_template
        ),
        integrations={
            name: IntegrationCapability(
                ready=item.enabled,
                exec_enabled=can_sign and item.exec_enabled,
                pay_enabled=can_sign and item.pay_enabled,
            )
            for name, item in policy.integrations.items()
        },
    )
