"""PropertyRegistry - wires store, ledger, attributes and contract together"""

from __future__ import annotations

import logging
from typing import Any

from ..config_schema import AppConfig
from .attributes import AttributeStore
from .contract import RegistryContract
from .events import EventLogger
from .ledger import PropertyLedger
from .store import KeyValueStore, MemoryStore, create_store

logger = logging.getLogger(__name__)


class PropertyRegistry:
    """One registry instance: shared store plus the three layers on top.

    The administrator id is read from config once, here, and handed to
    the ledger; nothing else looks it up.
    """

    store: KeyValueStore
    ledger: PropertyLedger
    attributes: AttributeStore
    contract: RegistryContract

    def __init__(
        self,
        config: AppConfig,
        store: KeyValueStore | None = None,
        events: EventLogger | None = None,
    ) -> None:
        self.store = store if store is not None else MemoryStore()
        self.ledger = PropertyLedger(
            self.store,
            admin_id=config.registry.admin_id,
            registry_config=config.registry,
        )
        self.attributes = AttributeStore(self.ledger)
        self.contract = RegistryContract(
            self.ledger,
            attributes=self.attributes,
            events=events,
            contract_config=config.contract,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> "PropertyRegistry":
        """Create a registry with the store backend and event log named in config."""
        store = create_store(config.store, config.timeouts)
        events = None
        if config.logging.events_file:
            events = EventLogger(config.logging.events_file)
        registry = cls(config, store=store, events=events)
        logger.info(
            "Registry ready (backend=%s, admin=%s, last_id=%d)",
            config.store.backend,
            config.registry.admin_id,
            registry.ledger.last_id(),
        )
        return registry

    def invoke(self, method: str, args: list[Any] | None, caller_id: str) -> dict[str, Any]:
        """Shortcut for self.contract.invoke()."""
        return self.contract.invoke(method, args, caller_id)
