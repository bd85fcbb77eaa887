"""Process-wide registry configuration

One AppConfig per process, read from config/config.yaml on first use.
run.py loads it explicitly and layers CLI overrides on top with
set_config_value(); library code only ever calls get_validated_config().

    from src.config import load_config, get_validated_config

    load_config("config/config.yaml")
    backend = get_validated_config().store.backend
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from .config_schema import AppConfig, validate_config_dict


# Raw YAML mapping (kept so overrides can be merged and re-validated)
_raw: dict[str, Any] | None = None
_validated_config: AppConfig | None = None

DEFAULT_CONFIG_PATH: Path = Path(__file__).parent.parent / "config" / "config.yaml"


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Read and validate a YAML config file, replacing the current one.

    Args:
        config_path: Config file; config/config.yaml when omitted.

    Raises:
        FileNotFoundError: If the file is missing.
        pydantic.ValidationError: If a key is unknown or a value out of range.
    """
    global _raw, _validated_config

    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        loaded = yaml.safe_load(f)
    raw: dict[str, Any] = loaded if isinstance(loaded, dict) else {}

    _validated_config = validate_config_dict(raw)
    _raw = raw
    return _validated_config


def get_validated_config() -> AppConfig:
    """Current AppConfig, loading the default file on first access."""
    if _validated_config is None:
        return load_config()
    return _validated_config


def set_config_value(key: str, value: Any) -> None:
    """Override one dotted key, e.g. set_config_value("store.path", "x.db").

    The merged mapping is validated before it replaces the current
    config, so a bad override raises and leaves the old config in place.
    """
    global _raw, _validated_config

    if _raw is None:
        load_config()
    merged: dict[str, Any] = copy.deepcopy(_raw or {})

    *parents, leaf = key.split(".")
    section = merged
    for name in parents:
        child = section.get(name)
        if not isinstance(child, dict):
            child = section[name] = {}
        section = child
    section[leaf] = value

    _validated_config = validate_config_dict(merged)
    _raw = merged


def reset_config() -> None:
    """Drop the loaded config; the next access reloads the default file."""
    global _raw, _validated_config
    _raw = None
    _validated_config = None
