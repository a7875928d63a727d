"""Pydantic settings for Audit Journal behavior."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.warden_shared.config import WardenSettings, resolve_component_settings
from services.state.audit_journal.component import SERVICE_COMPONENT_ID


class AuditJournalSettings(BaseModel):
    """Audit Journal file location and tail limits."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = "~/.local/state/warden/journal.jsonl"
    fsync_writes: bool = False
    read_limit_default: int = Field(default=20, gt=0)
    read_limit_max: int = Field(default=200, gt=0)

    @field_validator("path")
    @classmethod
    def _validate_path(cls, value: str) -> str:
        """Require a non-empty journal path."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError("path is required")
        return normalized

    def journal_path(self) -> Path:
        """Return the user-expanded journal file path."""
        return Path(self.path).expanduser()


def resolve_audit_journal_settings(settings: WardenSettings) -> AuditJournalSettings:
    """Resolve journal settings from ``components.service.audit_journal``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=AuditJournalSettings,
    )
