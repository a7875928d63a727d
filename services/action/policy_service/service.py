"""Authoritative in-process Python API for Policy Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from packages.warden_shared.config import WardenSettings
from packages.warden_shared.envelope import Envelope, EnvelopeMeta
from services.action.policy_service.domain import (
    ActionKind,
    CapabilityReport,
    ChannelConfig,
    ChannelHealthReport,
    PolicyChangeResult,
    PolicyDecision,
    PolicySnapshot,
    PolicyUpdate,
)
from services.state.audit_journal.service import AuditJournalService

ChannelConfigProvider = Callable[[], ChannelConfig]


class PolicyService(ABC):
    """Public API for capability snapshots, policy decisions and owner-gated updates."""

    @abstractmethod
    def capabilities(
        self, *, meta: EnvelopeMeta, account_id: str | None = None
    ) -> Envelope[CapabilityReport]:
        """Return the capability snapshot with executeTx/pay sample decisions."""

    @abstractmethod
    def policy_status(
        self, *, meta: EnvelopeMeta, account_id: str | None = None
    ) -> Envelope[PolicySnapshot]:
        """Return the effective policy snapshot for one account."""

    @abstractmethod
    def check_policy(
        self,
        *,
        meta: EnvelopeMeta,
        kind: ActionKind,
        integration: str | None = None,
        account_id: str | None = None,
    ) -> Envelope[PolicyDecision]:
        """Evaluate and journal one policy decision."""

    @abstractmethod
    def account_health(self, *, meta: EnvelopeMeta) -> Envelope[ChannelHealthReport]:
        """Return secret-free diagnostics for every declared account."""

    @abstractmethod
    def update_policy(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        actor_user_id: str | None,
        update: PolicyUpdate,
    ) -> Envelope[PolicyChangeResult]:
        """Owner-gate and build one policy change fragment; never writes config."""


def build_policy_service(
    *,
    settings: WardenSettings,
    journal: AuditJournalService,
    channel_provider: ChannelConfigProvider | None = None,
) -> PolicyService:
    """Build default Policy Service implementation from typed settings."""
    from services.action.policy_service.implementation import DefaultPolicyService

    return DefaultPolicyService.from_settings(
        settings,
        journal=journal,
        channel_provider=channel_provider,
    )
