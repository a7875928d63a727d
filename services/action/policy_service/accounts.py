"""Account resolution with account-over-channel precedence.

Identity and credential fields resolve field by field (account value, else
channel value, else empty). The policy block resolves wholesale: a non-empty
account policy replaces the channel policy entirely.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import SecretStr

from services.action.policy_service.domain import (
    DEFAULT_ACCOUNT_ID,
    AccountConfig,
    ChannelConfig,
    PolicyConfig,
    ResolvedAccount,
)

_T = TypeVar("_T")


def list_account_ids(channel: ChannelConfig) -> list[str]:
    """Return declared account ids in order, or the default id when none."""
    account_ids = list(channel.accounts)
    return account_ids if account_ids else [DEFAULT_ACCOUNT_ID]


def resolve_account(
    channel: ChannelConfig, account_id: str | None = None
) -> ResolvedAccount:
    """Resolve the effective view of one account. Never raises."""
    resolved_id = account_id or DEFAULT_ACCOUNT_ID
    account = channel.accounts.get(resolved_id) or AccountConfig()

    app_private_data = _first(account.app_private_data, channel.app_private_data)
    jwt_secret = _first(account.jwt_secret, channel.jwt_secret)

    return ResolvedAccount(
        account_id=resolved_id,
        enabled=_first(account.enabled, channel.enabled, True),
        configured=_has_secret(app_private_data) and _has_secret(jwt_secret),
        name=account.name,
        allow_from=_first(account.allow_from, channel.allow_from, ()),
        webhook_path=_first(account.webhook_path, channel.webhook_path),
        app_private_data=app_private_data,
        jwt_secret=jwt_secret,
    )


def resolve_policy_config(
    channel: ChannelConfig, account_id: str | None = None
) -> PolicyConfig:
    """Return the account policy when present and non-empty, else the channel's."""
    account = channel.accounts.get(account_id or DEFAULT_ACCOUNT_ID)
    if account is not None and account.policy is not None and not account.policy.is_empty():
        return account.policy
    if channel.policy is not None:
        return channel.policy
    return PolicyConfig()


def _first(*values: _T | None) -> _T | None:
    for value in values:
        if value is not None:
            return value
    return None


def _has_secret(value: SecretStr | None) -> bool:
    return value is not None and value.get_secret_value().strip() != ""
