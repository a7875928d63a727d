"""Typed root settings for the Warden runtime."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "warden" / "warden.yaml"

_SERVICE_PREFIX = "service_"

TComponentSettings = TypeVar("TComponentSettings", bound=BaseModel)


class LoggingSettings(BaseModel):
    """Root logging options passed to ``configure_logging``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "warden"
    environment: str = "dev"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value


class ComponentsSettings(BaseModel):
    """Raw ``components.service.<name>`` blocks.

    Each service validates its own block with its own model through
    ``resolve_component_settings``; nothing is validated here.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    service: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _hint_flat_keys(cls, value: object) -> object:
        if isinstance(value, dict):
            for key in value:
                if isinstance(key, str) and key.startswith(_SERVICE_PREFIX):
                    name = key[len(_SERVICE_PREFIX) :]
                    raise ValueError(
                        f"components.{key} is invalid; use components.service.{name}"
                    )
        return value

    @field_validator("service", mode="before")
    @classmethod
    def _empty_blocks(cls, value: object) -> object:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {name: {} if block is None else block for name, block in value.items()}
        return value


class WardenSettings(BaseModel):
    """Root settings after the cli/env/yaml/defaults cascade.

    ``channel`` stays a raw mapping; the policy service validates it into typed
    channel configuration on every read so edits apply without a restart.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    channel: dict[str, Any] = Field(default_factory=dict)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    @field_validator("channel", mode="before")
    @classmethod
    def _channel_or_empty(cls, value: object) -> object:
        return {} if value is None else value


def resolve_component_settings(
    *,
    settings: WardenSettings,
    component_id: str,
    model: type[TComponentSettings],
) -> TComponentSettings:
    """Validate ``components.service.<name>`` for ``service_<name>`` into ``model``.

    A missing block yields the model defaults.
    """
    if not component_id.startswith(_SERVICE_PREFIX):
        raise ValueError(f"unsupported component id: {component_id}")
    name = component_id[len(_SERVICE_PREFIX) :]
    return model.model_validate(settings.components.service.get(name, {}))
