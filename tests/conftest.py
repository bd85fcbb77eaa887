"""Pytest fixtures for property registry tests.

Common fixtures for building a registry over either store backend.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from dotenv import load_dotenv

from src.config import reset_config
from src.config_schema import AppConfig, TimeoutsConfig, validate_config_dict
from src.registry.attributes import AttributeStore
from src.registry.contract import RegistryContract
from src.registry.ledger import PropertyLedger
from src.registry.store import KeyValueStore, MemoryStore, SQLiteStore

# Load environment variables from .env before any tests run
load_dotenv()

ADMIN = "admin"


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "feature(name): mark test as belonging to a feature. "
        "Usage: @pytest.mark.feature('transfer')"
    )


@pytest.fixture(autouse=True)
def _fresh_global_config() -> Iterator[None]:
    """Drop any globally loaded config between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def app_config() -> AppConfig:
    """Default configuration without touching config/config.yaml."""
    return validate_config_dict({})


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> KeyValueStore:
    """Each backend in turn; tests using this run once per backend."""
    if request.param == "sqlite":
        return SQLiteStore(tmp_path / "registry.db", timeouts=TimeoutsConfig())
    return MemoryStore()


@pytest.fixture
def ledger(store: KeyValueStore, app_config: AppConfig) -> PropertyLedger:
    """Empty ledger administered by ADMIN."""
    return PropertyLedger(store, admin_id=ADMIN, registry_config=app_config.registry)


@pytest.fixture
def attributes(ledger: PropertyLedger) -> AttributeStore:
    return AttributeStore(ledger)


@pytest.fixture
def contract(
    ledger: PropertyLedger, attributes: AttributeStore, app_config: AppConfig
) -> RegistryContract:
    return RegistryContract(ledger, attributes=attributes, contract_config=app_config.contract)


@pytest.fixture
def property_id(ledger: PropertyLedger) -> int:
    """A registered property still owned by ADMIN."""
    return ledger.register(ADMIN, "3 bed house, 12 Elm St")
