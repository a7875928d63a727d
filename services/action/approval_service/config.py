"""Pydantic settings for Approval Service behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.warden_shared.config import WardenSettings, resolve_component_settings
from services.action.approval_service.component import SERVICE_COMPONENT_ID


class ApprovalServiceSettings(BaseModel):
    """Approval TTL and nonce allocation settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    approval_ttl_seconds: int = Field(default=600, ge=0)
    nonce_length: int = Field(default=6, ge=4, le=12)
    nonce_max_attempts: int = Field(default=16, gt=0)
    list_limit_default: int = Field(default=20, gt=0)


def resolve_approval_service_settings(
    settings: WardenSettings,
) -> ApprovalServiceSettings:
    """Resolve approval settings from ``components.service.approval_service``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=ApprovalServiceSettings,
    )
