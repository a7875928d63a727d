"""Public API for shared Warden configuration utilities."""

from .loader import load_config, load_settings, merge_dicts, write_config_fragment
from .models import (
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    LoggingSettings,
    WardenSettings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "LoggingSettings",
    "WardenSettings",
    "load_config",
    "load_settings",
    "merge_dicts",
    "resolve_component_settings",
    "write_config_fragment",
]
