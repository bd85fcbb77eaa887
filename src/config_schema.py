"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from src.config_schema import load_validated_config, AppConfig
    config = load_validated_config("config/config.yaml")
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# REGISTRY MODEL
# =============================================================================

class RegistryConfig(StrictModel):
    """Registry rules: administrator identity and text bounds."""

    admin_id: str = Field(
        default="admin",
        min_length=1,
        description="Caller id allowed to register properties"
    )
    description_min_length: int = Field(
        default=1,
        ge=1,
        description="Minimum length of a primary description"
    )
    description_max_length: int = Field(
        default=256,
        ge=1,
        description="Maximum length of a primary description"
    )
    text_min_length: int = Field(
        default=1,
        ge=1,
        description="Minimum length of textual attribute values"
    )
    text_max_length: int = Field(
        default=256,
        ge=1,
        description="Maximum length of textual attribute values"
    )
    bulk_max: int = Field(
        default=10,
        gt=0,
        description="Maximum number of descriptions per bulk registration"
    )
    require_transfer_approval: bool = Field(
        default=False,
        description="Reject transfers to recipients the owner has not approved"
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "RegistryConfig":
        """Minimum lengths must not exceed maximum lengths."""
        if self.description_min_length > self.description_max_length:
            raise ValueError(
                "description_min_length must be <= description_max_length"
            )
        if self.text_min_length > self.text_max_length:
            raise ValueError("text_min_length must be <= text_max_length")
        return self


# =============================================================================
# STORE MODEL
# =============================================================================

class StoreConfig(StrictModel):
    """Persistence backend for registry state."""

    backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="Key-value backend holding registry tables"
    )
    path: str = Field(
        default="registry.db",
        description="SQLite database file (sqlite backend only)"
    )


class TimeoutsConfig(StrictModel):
    """SQLite lock timeout and retry settings."""

    store_lock: float = Field(
        default=30.0,
        gt=0,
        description="Seconds a connection waits on a locked database"
    )
    store_retry_max: int = Field(
        default=5,
        gt=0,
        description="Max attempts for a write hitting 'database is locked'"
    )
    store_retry_base: float = Field(
        default=0.1,
        gt=0,
        description="Initial backoff delay in seconds"
    )
    store_retry_max_delay: float = Field(
        default=5.0,
        gt=0,
        description="Backoff delay cap in seconds"
    )


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level used by the CLI"
    )
    events_file: str | None = Field(
        default=None,
        description="JSONL file for registry events (disabled when unset)"
    )
    default_recent: int = Field(
        default=50,
        gt=0,
        description="Default number of recent events to return"
    )


# =============================================================================
# CONTRACT MODEL
# =============================================================================

class ContractConfig(StrictModel):
    """Call surface settings.

    method_descriptions overrides the built-in description of any method
    by name, e.g. {"register": "Register a parcel"}.
    """

    id: str = Field(default="property_registry", description="Contract id")
    description: str = Field(
        default="Registry of real-world properties with one-time ownership transfer",
        description="Contract description shown in the interface listing"
    )
    method_descriptions: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# ROOT CONFIG MODEL
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model for the entire application.

    All fields have sensible defaults, so an empty config file is valid.
    """

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    contract: ContractConfig = Field(default_factory=ContractConfig)


# =============================================================================
# LOADING FUNCTIONS
# =============================================================================

def load_validated_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid (with detailed error message).
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig.model_validate(raw_config)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Args:
        config_dict: Configuration as a dictionary.

    Returns:
        Validated AppConfig instance.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


__all__ = [
    "AppConfig",
    "RegistryConfig",
    "StoreConfig",
    "TimeoutsConfig",
    "LoggingConfig",
    "ContractConfig",
    "load_validated_config",
    "validate_config_dict",
]
