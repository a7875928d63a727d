"""Pydantic settings for Policy Service behavior."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, field_validator

from packages.warden_shared.config import WardenSettings, resolve_component_settings
from services.action.policy_service.component import SERVICE_COMPONENT_ID

DEFAULT_ACCOUNT_ID_PATTERN = r"^[A-Za-z0-9_-]{1,48}$"
DEFAULT_WEBHOOK_PATH_TEMPLATE = "/towns/{account_id}/webhook"


class PolicyServiceSettings(BaseModel):
    """Policy Service input validation and snapshot rendering settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    account_id_pattern: str = DEFAULT_ACCOUNT_ID_PATTERN
    webhook_path_template: str = DEFAULT_WEBHOOK_PATH_TEMPLATE

    @field_validator("account_id_pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        """Require a compilable regular expression."""
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"account_id_pattern is not a valid regex: {exc}") from None
        return value

    @field_validator("webhook_path_template")
    @classmethod
    def _validate_template(cls, value: str) -> str:
        """Require the ``{account_id}`` placeholder."""
        if "{account_id}" not in value:
            raise ValueError("webhook_path_template must contain '{account_id}'")
        return value

    def is_valid_account_id(self, account_id: str) -> bool:
        """Return True when ``account_id`` matches the configured pattern."""
        return re.fullmatch(self.account_id_pattern, account_id) is not None


def resolve_policy_service_settings(settings: WardenSettings) -> PolicyServiceSettings:
    """Resolve policy settings from ``components.service.policy_service``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=PolicyServiceSettings,
    )
