"""Owner gate and policy mutation fragments.

The core never writes configuration. ``build_policy_fragment`` returns the
next effective policy for one account, keyed the way it lives under the
``channel`` config subtree, for an external writer to merge.
"""

from __future__ import annotations

from typing import Any

from services.action.policy_service.accounts import resolve_policy_config
from services.action.policy_service.domain import (
    ChannelConfig,
    PolicySnapshot,
    PolicyUpdate,
)


def is_owner(policy: PolicySnapshot, user_id: str | None) -> bool:
    """Return True iff ``user_id`` is literally listed as an owner."""
    if user_id is None or user_id.strip() == "":
        return False
    return user_id in policy.owner_user_ids


def build_policy_fragment(
    channel: ChannelConfig, account_id: str, update: PolicyUpdate
) -> dict[str, Any]:
    """Return ``{"accounts": {account_id: {"policy": ...}}}`` after ``update``.

    Starts from the wholesale-resolved current policy so an account inheriting
    the channel policy gets a full copy it then owns. Raises ``ValueError``
    when the update would leave the account with no owners.
    """
    current = resolve_policy_config(channel, account_id)
    document = current.model_dump(mode="json", by_alias=True, exclude_none=True)

    if update.mode is not None:
        document["mode"] = update.mode.value

    limits = dict(document.get("limits") or {})
    if update.max_per_tx_usd is not None:
        limits["maxPerTxUsd"] = update.max_per_tx_usd
    if update.max_per_day_usd is not None:
        limits["maxPerDayUsd"] = update.max_per_day_usd
    if limits:
        document["limits"] = limits
    else:
        document.pop("limits", None)

    integrations = {
        name: dict(values) for name, values in (document.get("integrations") or {}).items()
    }
    for name, toggle in update.integrations.items():
        integrations.setdefault(name, {}).update(
            toggle.model_dump(by_alias=True, exclude_none=True)
        )
    if integrations:
        document["integrations"] = integrations
    else:
        document.pop("integrations", None)

    if update.add_owner_user_ids or update.remove_owner_user_ids:
        owners = list(document.get("allowedOwnerUserIds") or [])
        owners.extend(
            user_id for user_id in update.add_owner_user_ids if user_id not in owners
        )
        owners = [user_id for user_id in owners if user_id not in update.remove_owner_user_ids]
        if not owners:
            raise ValueError("policy must keep at least one owner")
        document["allowedOwnerUserIds"] = owners

    return {"accounts": {account_id: {"policy": document}}}


def describe_changes(update: PolicyUpdate) -> tuple[str, ...]:
    """Return one ``key=value`` line per requested change, for display."""
    changes: list[str] = []
    if update.mode is not None:
        changes.append(f"mode={update.mode.value}")
    if update.max_per_tx_usd is not None:
        changes.append(f"maxPerTxUsd={update.max_per_tx_usd:g}")
    if update.max_per_day_usd is not None:
        changes.append(f"maxPerDayUsd={update.max_per_day_usd:g}")
    for name, toggle in update.integrations.items():
        for key, value in toggle.model_dump(by_alias=True, exclude_none=True).items():
            changes.append(f"integrations.{name}.{key}={str(value).lower()}")
    changes.extend(f"owner+={user_id}" for user_id in update.add_owner_user_ids)
    changes.extend(f"owner-={user_id}" for user_id in update.remove_owner_user_ids)
    return tuple(changes)
