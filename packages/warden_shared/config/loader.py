"""Layered configuration loading for Warden.

Layers merge lowest first: built-in defaults, the YAML file
(``~/.config/warden/warden.yaml`` unless overridden), ``WARDEN_*`` environment
variables, then explicit CLI params. Environment keys nest on ``__``, so
``WARDEN_LOGGING__LEVEL=DEBUG`` sets ``logging.level``.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from functools import reduce
from pathlib import Path
from typing import Any, Mapping

import yaml

from .defaults import BUILTIN_DEFAULTS
from .models import DEFAULT_CONFIG_PATH, WardenSettings

ENV_PREFIX = "WARDEN_"

_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None, "none": None}


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> WardenSettings:
    """Merge every layer and validate the result as ``WardenSettings``."""
    merged = load_config(
        cli_params=cli_params,
        environ=environ,
        config_path=config_path,
        defaults=defaults,
    )
    return WardenSettings.model_validate(merged)


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    defaults: Mapping[str, Any] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Return the merged raw mapping without model validation."""
    layers = (
        BUILTIN_DEFAULTS if defaults is None else defaults,
        _read_config_file(config_path),
        _env_layer(os.environ if environ is None else environ, env_prefix),
        cli_params or {},
    )
    return reduce(merge_dicts, layers, {})


def _read_config_file(config_path: str | Path | None) -> dict[str, Any]:
    """Parse the YAML config file; a missing or empty file reads as ``{}``."""
    path = _config_file(config_path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"config file {path} is not valid YAML: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"config file {path} must hold a top-level mapping")
    return parsed


def write_config_fragment(
    *, fragment: Mapping[str, Any], config_path: str | Path | None = None
) -> Path:
    """Merge ``fragment`` into the config file and replace it atomically.

    Keys absent from ``fragment`` keep their current file values. The new
    document is written to a sibling temp file first, so readers never observe
    a partial file.
    """
    path = _config_file(config_path)
    document = merge_dicts(_read_config_file(path), fragment)

    path.parent.mkdir(parents=True, exist_ok=True)
    handle, temp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            yaml.safe_dump(document, stream, sort_keys=False, default_flow_style=False)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
    return path


def merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two mappings into a new dict.

    Nested mappings merge key by key; any other value in ``override``,
    lists included, replaces the base value whole.
    """
    merged: dict[str, Any] = {str(key): copy.deepcopy(value) for key, value in base.items()}
    for key, value in override.items():
        current = merged.get(str(key))
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[str(key)] = merge_dicts(current, value)
        else:
            merged[str(key)] = copy.deepcopy(value)
    return merged


def _config_file(config_path: str | Path | None) -> Path:
    return Path(config_path if config_path is not None else DEFAULT_CONFIG_PATH).expanduser()


def _env_layer(environ: Mapping[str, str], prefix: str) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(prefix):
            continue
        keys = [part.strip().lower() for part in name[len(prefix) :].split("__")]
        keys = [key for key in keys if key]
        if not keys:
            continue
        node = layer
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = node[key] = {}
            node = child
        node[keys[-1]] = _env_value(raw)
    return layer


def _env_value(raw: str) -> Any:
    """Interpret one env string as bool, null, JSON, int or float when it reads as one."""
    text = raw.strip()
    if text.lower() in _LITERALS:
        return _LITERALS[text.lower()]
    if text[:1] in ("{", "["):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return raw
    for convert in (int, float):
        try:
            return convert(text)
        except ValueError:
            continue
    return raw
