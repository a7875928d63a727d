"""Concrete Policy Service over fresh channel configuration and the audit journal."""

from __future__ import annotations

from typing import Any

from packages.warden_shared.config import WardenSettings
from packages.warden_shared.envelope import (
    Envelope,
    EnvelopeMeta,
    failure,
    success,
    validate_meta,
)
from packages.warden_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    exception_to_error,
    policy_error,
    validation_error,
)
from packages.warden_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_instrumented,
)
from services.action.policy_service.accounts import list_account_ids, resolve_account
from services.action.policy_service.capabilities import (
    build_capability_snapshot,
    build_policy_snapshot,
    normalize_webhook_path,
)
from services.action.policy_service.component import SERVICE_COMPONENT_ID
from services.action.policy_service.config import (
    PolicyServiceSettings,
    resolve_policy_service_settings,
)
from services.action.policy_service.domain import (
    AccountHealth,
    ActionKind,
    CapabilityReport,
    CapabilitySnapshot,
    ChannelConfig,
    ChannelHealthReport,
    PolicyChangeResult,
    PolicyDecision,
    PolicySnapshot,
    PolicyUpdate,
    ReasonCode,
)
from services.action.policy_service.engine import evaluate_policy_action
from services.action.policy_service.owner import (
    build_policy_fragment,
    describe_changes,
    is_owner,
)
from services.action.policy_service.service import ChannelConfigProvider, PolicyService
from services.state.audit_journal.domain import (
    JournalCategory,
    JournalStatus,
    JournalWriteError,
)
from services.state.audit_journal.service import (
    AuditJournalService,
    build_audit_journal_service,
)

_LOGGER = get_logger(__name__)

_CAPABILITY_SAMPLES: tuple[tuple[str, ActionKind, str], ...] = (
    ("executeTx(polymarket)", ActionKind.EXECUTE_TX, "polymarket"),
    ("pay(x402)", ActionKind.PAY, "x402"),
)
_POLICY_SET_ACTION = "policy_set"


def channel_config_from_settings(settings: WardenSettings) -> ChannelConfig:
    """Validate the raw ``channel`` subtree into typed channel configuration."""
    return ChannelConfig.model_validate(settings.channel)


class DefaultPolicyService(PolicyService):
    """Stateless policy service; configuration is re-read on every call."""

    def __init__(
        self,
        *,
        settings: PolicyServiceSettings,
        journal: AuditJournalService,
        channel_provider: ChannelConfigProvider,
    ) -> None:
        self._settings = settings
        self._journal = journal
        self._channel_provider = channel_provider

    @classmethod
    def from_settings(
        cls,
        settings: WardenSettings,
        *,
        journal: AuditJournalService | None = None,
        channel_provider: ChannelConfigProvider | None = None,
    ) -> "DefaultPolicyService":
        """Build policy service from typed root runtime settings."""
        return cls(
            settings=resolve_policy_service_settings(settings),
            journal=journal or build_audit_journal_service(settings=settings),
            channel_provider=channel_provider
            or (lambda: channel_config_from_settings(settings)),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("account_id",),
    )
    def capabilities(
        self, *, meta: EnvelopeMeta, account_id: str | None = None
    ) -> Envelope[CapabilityReport]:
        """Return the capability snapshot with executeTx/pay sample decisions."""
        error = _meta_error(meta)
        if error is not None:
            return failure(meta=meta, errors=[error])
        channel, error = self._load_channel()
        if error is not None:
            return failure(meta=meta, errors=[error])

        snapshot = self._capability_snapshot(channel, account_id)
        decisions = {
            label: evaluate_policy_action(snapshot, kind, integration)
            for label, kind, integration in _CAPABILITY_SAMPLES
        }
        return success(
            meta=meta,
            payload=CapabilityReport(snapshot=snapshot, decisions=decisions),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("account_id",),
    )
    def policy_status(
        self, *, meta: EnvelopeMeta, account_id: str | None = None
    ) -> Envelope[PolicySnapshot]:
        """Return the effective policy snapshot for one account."""
        error = _meta_error(meta)
        if error is not None:
            return failure(meta=meta, errors=[error])
        channel, error = self._load_channel()
        if error is not None:
            return failure(meta=meta, errors=[error])
        return success(meta=meta, payload=build_policy_snapshot(channel, account_id))

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("account_id", "integration"),
    )
    def check_policy(
        self,
        *,
        meta: EnvelopeMeta,
        kind: ActionKind,
        integration: str | None = None,
        account_id: str | None = None,
    ) -> Envelope[PolicyDecision]:
        """Evaluate one action and journal the decision as ``check:<kind>``."""
        error = _meta_error(meta)
        if error is not None:
            return failure(meta=meta, errors=[error])
        channel, error = self._load_channel()
        if error is not None:
            return failure(meta=meta, errors=[error])

        snapshot = self._capability_snapshot(channel, account_id)
        decision = evaluate_policy_action(snapshot, kind, integration)

        journal_error = self._record(
            category=JournalCategory.POLICY,
            action=f"check:{kind.value}",
            status=JournalStatus.ALLOW if decision.allow else JournalStatus.DENY,
            account_id=snapshot.account_id,
            reason_code=decision.reason_code.value,
            details={"integration": integration} if integration else None,
        )
        if journal_error is not None:
            return failure(meta=meta, errors=[journal_error], payload=decision)
        return success(meta=meta, payload=decision)

    @public_api_instrumented(logger=_LOGGER, component_id=SERVICE_COMPONENT_ID)
    def account_health(self, *, meta: EnvelopeMeta) -> Envelope[ChannelHealthReport]:
        """Return secret-free diagnostics for every declared account."""
        error = _meta_error(meta)
        if error is not None:
            return failure(meta=meta, errors=[error])
        channel, error = self._load_channel()
        if error is not None:
            return failure(meta=meta, errors=[error])

        accounts: list[AccountHealth] = []
        for account_id in list_account_ids(channel):
            account = resolve_account(channel, account_id)
            accounts.append(
                AccountHealth(
                    account_id=account.account_id,
                    enabled=account.enabled,
                    configured=account.configured,
                    webhook_path=normalize_webhook_path(
                        account.account_id,
                        account.webhook_path,
                        template=self._settings.webhook_path_template,
                    ),
                    allow_from_count=len(account.allow_from),
                )
            )
        return success(
            meta=meta,
            payload=ChannelHealthReport(
                channel_enabled=channel.enabled is not False,
                account_count=len(accounts),
                accounts=tuple(accounts),
            ),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("account_id", "actor_user_id"),
    )
    def update_policy(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        actor_user_id: str | None,
        update: PolicyUpdate,
    ) -> Envelope[PolicyChangeResult]:
        """Owner-gate one policy change and return the fragment to persist."""
        error = _meta_error(meta)
        if error is not None:
            return failure(meta=meta, errors=[error])
        if not self._settings.is_valid_account_id(account_id):
            return failure(
                meta=meta,
                errors=[
                    validation_error(
                        "invalid account id format",
                        code=codes.INVALID_ARGUMENT,
                        metadata={"account_id": account_id},
                    )
                ],
            )
        channel, error = self._load_channel()
        if error is not None:
            return failure(meta=meta, errors=[error])

        policy = build_policy_snapshot(channel, account_id)
        if actor_user_id is None or not is_owner(policy, actor_user_id):
            return self._deny_not_owner(
                meta=meta, account_id=account_id, actor_user_id=actor_user_id
            )

        try:
            fragment = build_policy_fragment(channel, account_id, update)
        except ValueError as exc:
            return failure(
                meta=meta,
                errors=[validation_error(str(exc), code=codes.INVALID_ARGUMENT)],
            )

        changes = describe_changes(update)
        journal_error = self._record(
            category=JournalCategory.POLICY,
            action=_POLICY_SET_ACTION,
            status=JournalStatus.ALLOW,
            account_id=account_id,
            actor_user_id=actor_user_id,
            reason_code=ReasonCode.ALLOW.value,
            details={"changes": list(changes)},
        )
        if journal_error is not None:
            return failure(meta=meta, errors=[journal_error])

        return success(
            meta=meta,
            payload=PolicyChangeResult(
                account_id=account_id,
                actor_user_id=actor_user_id,
                changes=changes,
                fragment=fragment,
            ),
        )

    def _deny_not_owner(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        actor_user_id: str | None,
    ) -> Envelope[PolicyChangeResult]:
        """Journal and return the owner-gate denial."""
        actor = actor_user_id if actor_user_id and actor_user_id.strip() else None
        if actor is None:
            message = "owner-gated operation requires an explicit actor user id"
        else:
            message = f"actor {actor} is not listed in policy.allowedOwnerUserIds"

        with log_context(
            {
                fields.ACCOUNT_ID: account_id,
                fields.ACTOR_USER_ID: actor,
                fields.REASON_CODE: ReasonCode.DENY_NOT_OWNER.value,
            }
        ):
            _LOGGER.info("Policy update denied by owner gate")

        errors = [
            policy_error(
                message,
                code=ReasonCode.DENY_NOT_OWNER.value,
                metadata={"account_id": account_id},
            )
        ]
        journal_error = self._record(
            category=JournalCategory.POLICY,
            action=_POLICY_SET_ACTION,
            status=JournalStatus.DENY,
            account_id=account_id,
            actor_user_id=actor,
            reason_code=ReasonCode.DENY_NOT_OWNER.value,
            details={"actorMissing": True} if actor is None else None,
        )
        if journal_error is not None:
            errors.append(journal_error)
        return failure(meta=meta, errors=errors)

    def _load_channel(self) -> tuple[ChannelConfig, None] | tuple[None, ErrorDetail]:
        """Read channel configuration fresh, mapping load failures to errors."""
        try:
            return self._channel_provider(), None
        except (ValueError, OSError) as exc:
            _LOGGER.warning("Channel configuration unavailable", exc_info=True)
            return None, exception_to_error(exc)

    def _capability_snapshot(
        self, channel: ChannelConfig, account_id: str | None
    ) -> CapabilitySnapshot:
        return build_capability_snapshot(
            channel,
            account_id,
            webhook_path_template=self._settings.webhook_path_template,
        )

    def _record(self, **kwargs: Any) -> ErrorDetail | None:
        """Append one journal event; map write failures to a dependency error."""
        try:
            self._journal.record(**kwargs)
        except JournalWriteError as exc:
            return dependency_error(
                f"audit journal write failed: {exc}",
                code=codes.JOURNAL_WRITE_FAILED,
            )
        return None


def _meta_error(meta: EnvelopeMeta) -> ErrorDetail | None:
    try:
        validate_meta(meta)
    except ValueError as exc:
        return validation_error(str(exc), code=codes.INVALID_ARGUMENT)
    return None
