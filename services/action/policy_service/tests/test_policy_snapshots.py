"""Unit tests for account resolution, snapshots and the decision evaluator."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

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
from services.action.policy_service.domain import (
    ActionKind,
    CapabilitySnapshot,
    ChannelConfig,
    IntegrationCapability,
    PolicyMode,
    ReasonCode,
)
from services.action.policy_service.engine import (
    evaluate_policy_action,
    parse_action_kind,
)

_CREDENTIALS = {"appPrivateData": "0xabc", "jwtSecret": "s3cret"}


def _channel(**raw: object) -> ChannelConfig:
    return ChannelConfig.model_validate(raw)


def test_list_account_ids_defaults_when_none_declared() -> None:
    assert list_account_ids(_channel()) == ["default"]
    assert list_account_ids(_channel(accounts={"b": {}, "a": {}})) == ["b", "a"]


def test_resolve_account_prefers_account_fields_over_channel() -> None:
    channel = _channel(
        enabled=False,
        appPrivateData="0xchannel",
        jwtSecret="channel-secret",
        allowFrom=["towns:user:ch"],
        webhookPath="/channel",
        accounts={"ops": {"enabled": True, "name": "Ops", "allowFrom": []}},
    )

    account = resolve_account(channel, "ops")

    assert account.account_id == "ops"
    assert account.enabled is True
    assert account.configured is True
    assert account.name == "Ops"
    assert account.allow_from == ()
    assert account.webhook_path == "/channel"


def test_resolve_account_defaults_enabled_and_unconfigured() -> None:
    account = resolve_account(_channel(appPrivateData="0xabc", jwtSecret="   "))

    assert account.account_id == "default"
    assert account.enabled is True
    assert account.configured is False
    assert account.allow_from == ()


def test_resolve_account_never_exposes_secrets_in_repr() -> None:
    account = resolve_account(_channel(**_CREDENTIALS))

    assert "s3cret" not in repr(account)
    assert "0xabc" not in repr(account)


def test_policy_resolves_wholesale_from_account_level() -> None:
    channel = _channel(
        policy={"mode": "BOUNDED_AUTO", "allowedOwnerUserIds": ["u1"]},
        accounts={
            "a": {"policy": {"mode": "CONFIRM_ALWAYS"}},
            "b": {"policy": {}},
        },
    )

    account_policy = build_policy_snapshot(channel, "a")
    empty_override = build_policy_snapshot(channel, "b")

    assert account_policy.mode == PolicyMode.CONFIRM_ALWAYS
    assert account_policy.owner_user_ids == ()
    assert empty_override.mode == PolicyMode.BOUNDED_AUTO
    assert empty_override.owner_user_ids == ("u1",)
    assert resolve_policy_config(_channel(), "missing").is_empty()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("bounded_auto", PolicyMode.BOUNDED_AUTO),
        (" Confirm_Always ", PolicyMode.CONFIRM_ALWAYS),
        ("READ_ONLY", PolicyMode.READ_ONLY),
        ("yolo", PolicyMode.READ_ONLY),
        (None, PolicyMode.READ_ONLY),
        (3, PolicyMode.READ_ONLY),
    ],
)
def test_normalize_policy_mode_fails_safe(raw: object, expected: PolicyMode) -> None:
    assert normalize_policy_mode(raw) == expected


def test_normalize_webhook_path() -> None:
    assert normalize_webhook_path("ops", None) == "/towns/ops/webhook"
    assert normalize_webhook_path("ops", "   ") == "/towns/ops/webhook"
    assert normalize_webhook_path("ops", "hooks/ops") == "/hooks/ops"
    assert normalize_webhook_path("ops", " /hooks/ops ") == "/hooks/ops"


def test_policy_snapshot_normalizes_limits_and_integrations() -> None:
    channel = _channel(
        policy={
            "limits": {"maxPerTxUsd": 75, "maxPerDayUsd": -5},
            "integrations": {
                "polymarket": {"enabled": False},
                "x402": {"payEnabled": True},
                "custom": {"execEnabled": True},
            },
        }
    )

    snapshot = build_policy_snapshot(channel)

    assert snapshot.limits.max_per_tx_usd == 75.0
    assert snapshot.limits.max_per_day_usd is None
    assert list(snapshot.integrations) == ["polymarket", "registry8004", "x402", "custom"]
    assert snapshot.integrations["polymarket"].enabled is False
    assert snapshot.integrations["registry8004"].enabled is True
    assert snapshot.integrations["x402"].pay_enabled is True


def test_capability_snapshot_gates_exec_and_pay_on_signing() -> None:
    integrations = {
        "polymarket": {"execEnabled": True},
        "x402": {"payEnabled": True},
    }
    read_only = build_capability_snapshot(
        _channel(**_CREDENTIALS, policy={"mode": "READ_ONLY", "integrations": integrations})
    )
    bounded = build_capability_snapshot(
        _channel(**_CREDENTIALS, policy={"mode": "BOUNDED_AUTO", "integrations": integrations})
    )

    assert read_only.wallet_context is True
    assert read_only.can_sign is False
    assert read_only.integrations["polymarket"].exec_enabled is False
    assert read_only.integrations["x402"].pay_enabled is False
    assert bounded.can_sign is True
    assert bounded.integrations["polymarket"].exec_enabled is True
    assert bounded.integrations["x402"].pay_enabled is True


def test_capability_snapshot_rejects_inconsistent_signing_state() -> None:
    with pytest.raises(ValidationError):
        CapabilitySnapshot(
            account_id="default",
            channel_enabled=True,
            configured=False,
            wallet_context=False,
            can_sign=False,
            policy_mode=PolicyMode.BOUNDED_AUTO,
            owner_count=0,
            webhook_path="/towns/default/webhook",
            integrations={"x402": IntegrationCapability(ready=True, pay_enabled=True)},
        )


def test_unconfigured_bounded_auto_denies_not_configured() -> None:
    snapshot = build_capability_snapshot(
        _channel(policy={"mode": "BOUNDED_AUTO", "allowedOwnerUserIds": ["u1"]})
    )

    decision = evaluate_policy_action(snapshot, ActionKind.EXECUTE_TX)

    assert snapshot.configured is False
    assert snapshot.can_sign is False
    assert decision.allow is False
    assert decision.reason_code == ReasonCode.DENY_NOT_CONFIGURED


def test_read_only_blocks_before_integration_check() -> None:
    snapshot = build_capability_snapshot(
        _channel(
            **_CREDENTIALS,
            policy={"mode": "READ_ONLY", "integrations": {"x402": {"enabled": False}}},
        )
    )

    decision = evaluate_policy_action(snapshot, ActionKind.PAY, "x402")

    assert snapshot.can_sign is False
    assert decision.reason_code == ReasonCode.DENY_READ_ONLY_MODE


def test_disabled_integration_denies() -> None:
    snapshot = build_capability_snapshot(
        _channel(
            **_CREDENTIALS,
            policy={
                "mode": "BOUNDED_AUTO",
                "integrations": {"polymarket": {"enabled": False}},
            },
        )
    )

    assert (
        evaluate_policy_action(snapshot, ActionKind.EXECUTE_TX, "polymarket").reason_code
        == ReasonCode.DENY_INTEGRATION_DISABLED
    )
    assert evaluate_policy_action(snapshot, ActionKind.EXECUTE_TX).allow is True
    assert evaluate_policy_action(snapshot, ActionKind.PAY, "unlisted").allow is True


def test_wallet_context_missing_is_reported_after_configuration() -> None:
    snapshot = CapabilitySnapshot(
        account_id="default",
        channel_enabled=True,
        configured=True,
        wallet_context=False,
        can_sign=False,
        policy_mode=PolicyMode.BOUNDED_AUTO,
        owner_count=0,
        webhook_path="/towns/default/webhook",
    )

    decision = evaluate_policy_action(snapshot, ActionKind.DELEGATE)

    assert decision.reason_code == ReasonCode.DENY_WALLET_CONTEXT_MISSING


def test_read_is_always_allowed() -> None:
    snapshot = build_capability_snapshot(_channel())

    assert evaluate_policy_action(snapshot, ActionKind.READ).allow is True


def test_parse_action_kind_maps_unknown_to_read() -> None:
    assert parse_action_kind("executeTx") == ActionKind.EXECUTE_TX
    assert parse_action_kind("pay") == ActionKind.PAY
    assert parse_action_kind("transfer") == ActionKind.READ
    assert parse_action_kind(None) == ActionKind.READ
