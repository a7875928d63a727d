"""Runtime composition: build every Warden service from one settings cascade."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from packages.warden_shared.config import (
    DEFAULT_CONFIG_PATH,
    WardenSettings,
    load_settings,
)
from services.action.approval_service.service import (
    ApprovalService,
    build_approval_service,
)
from services.action.intent_router.service import (
    IntentRouterService,
    build_intent_router_service,
)
from services.action.policy_service.domain import ChannelConfig
from services.action.policy_service.service import (
    ChannelConfigProvider,
    PolicyService,
    build_policy_service,
)
from services.state.audit_journal.service import (
    AuditJournalService,
    build_audit_journal_service,
)


@dataclass(frozen=True, slots=True)
class WardenRuntime:
    """Wired services sharing one journal and one approval registry."""

    settings: WardenSettings
    config_path: Path
    journal: AuditJournalService
    policy: PolicyService
    approvals: ApprovalService
    intents: IntentRouterService


def fresh_channel_provider(
    *,
    config_path: str | Path | None = None,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ChannelConfigProvider:
    """Return a provider that re-runs the cascade and validates ``channel``.

    Each call reads the config file again so policy changes written by
    another process apply on the next decision.
    """

    def provide() -> ChannelConfig:
        settings = load_settings(
            cli_params=cli_params,
            environ=environ,
            config_path=config_path,
        )
        return ChannelConfig.model_validate(settings.channel)

    return provide


def build_runtime(
    *,
    config_path: str | Path | None = None,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    settings: WardenSettings | None = None,
    journal: AuditJournalService | None = None,
) -> WardenRuntime:
    """Load settings once and wire the services for one process."""
    resolved_path = (
        Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    ).expanduser()
    resolved = settings or load_settings(
        cli_params=cli_params,
        environ=environ,
        config_path=resolved_path,
    )
    resolved_journal = journal or build_audit_journal_service(settings=resolved)
    return WardenRuntime(
        settings=resolved,
        config_path=resolved_path,
        journal=resolved_journal,
        policy=build_policy_service(
            settings=resolved,
            journal=resolved_journal,
            channel_provider=fresh_channel_provider(
                config_path=resolved_path,
                cli_params=cli_params,
                environ=environ,
            ),
        ),
        approvals=build_approval_service(settings=resolved, journal=resolved_journal),
        intents=build_intent_router_service(settings=resolved, journal=resolved_journal),
    )
