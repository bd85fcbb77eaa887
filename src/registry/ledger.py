"""Ownership ledger - property ids, owners and the one-shot transfer lock

The ledger is the authority on whether a property exists and who owns
it. Everything else in the registry gates its writes on authorize_owner().

Per property the state moves
    Unregistered -> Registered(owner, locked=False) -> Registered(owner', locked=True)
and never back. The lock is set by the first successful transfer (or by
freeze()), so at most one transfer ever succeeds per property.

Multi-write operations (register, bulk_register, transfer) run inside
store.transaction(): a failed call leaves no partial writes behind.
"""

from __future__ import annotations

import logging
from typing import Any

from ..config import get_validated_config
from ..config_schema import RegistryConfig
from .allocator import IdentifierAllocator
from .constants import (
    APPROVAL_TABLE,
    DESCRIPTION_TABLE,
    LOCK_TABLE,
    OWNER_TABLE,
)
from .errors import AlreadyTransferred, InvalidData, NotFound, Unauthorized
from .store import KeyValueStore

logger = logging.getLogger(__name__)


class PropertyLedger:
    """
    Tracks owner, transfer lock and primary description per property.

    - owner: {property_id: caller_id}
    - transfer_lock: {property_id: bool}, absent means False
    - description: {property_id: text}, immutable after registration

    The administrator id is fixed at construction and is the only caller
    allowed to register properties.
    """

    store: KeyValueStore
    allocator: IdentifierAllocator
    admin_id: str
    config: RegistryConfig

    def __init__(
        self,
        store: KeyValueStore,
        admin_id: str | None = None,
        registry_config: RegistryConfig | None = None,
        allocator: IdentifierAllocator | None = None,
    ) -> None:
        """
        Args:
            store: Persistence substrate shared with the attribute store
            admin_id: Administrator caller id (defaults to registry.admin_id)
            registry_config: Registry rules (uses global config if not provided)
            allocator: Id allocator over the same store (created if not provided)
        """
        self.config = registry_config or get_validated_config().registry
        self.store = store
        self.admin_id = admin_id or self.config.admin_id
        self.allocator = allocator or IdentifierAllocator(store)

    # ===== AUTHORIZATION =====

    def is_admin(self, caller_id: str) -> bool:
        """Check whether caller is the registry administrator."""
        return caller_id == self.admin_id

    def authorize_owner(self, property_id: int, caller_id: str) -> bool:
        """True iff the property exists and caller is its current owner.

        A missing property is treated as "not the owner", not as an error.
        """
        owner = self.owner_of(property_id)
        return owner is not None and owner == caller_id

    def require_admin(self, caller_id: str, action: str) -> None:
        """Raise Unauthorized unless caller is the administrator."""
        if not self.is_admin(caller_id):
            logger.debug("Rejected %s by non-admin %s", action, caller_id)
            raise Unauthorized(
                f"Only the registry administrator may {action}. You are {caller_id}.",
                caller=caller_id,
            )

    def require_owner(self, property_id: int, caller_id: str, action: str) -> None:
        """Raise Unauthorized unless caller owns the property."""
        if not self.authorize_owner(property_id, caller_id):
            logger.debug(
                "Rejected %s on property %s by non-owner %s",
                action, property_id, caller_id,
            )
            raise Unauthorized(
                f"Only the owner of property {property_id} may {action}. "
                f"You are {caller_id}.",
                property_id=property_id,
                caller=caller_id,
            )

    def require_exists(self, property_id: int) -> None:
        """Raise NotFound unless the property has an ownership record."""
        if not self.exists(property_id):
            raise NotFound(
                f"Property {property_id} is not registered.",
                property_id=property_id,
            )

    def _validate_description(self, description: Any) -> str:
        lo = self.config.description_min_length
        hi = self.config.description_max_length
        if not isinstance(description, str):
            raise InvalidData(
                f"Description must be a string, got {type(description).__name__}.",
                field="description",
            )
        if not lo <= len(description) <= hi:
            raise InvalidData(
                f"Description must be {lo}-{hi} characters, got {len(description)}.",
                field="description",
                length=len(description),
            )
        return description

    # ===== REGISTRATION =====

    def register(self, caller_id: str, description: str) -> int:
        """Register a new property owned by the administrator.

        Allocates the next id, records owner and lock, stores the
        description. The three writes commit together or not at all.

        Returns:
            The new property id

        Raises:
            Unauthorized: If caller is not the administrator
            InvalidData: If description length is out of bounds
        """
        self.require_admin(caller_id, "register properties")
        property_id = self._register_one(caller_id, description)
        logger.info("Registered property %d for %s", property_id, caller_id)
        return property_id

    def _register_one(self, caller_id: str, description: Any) -> int:
        """Validate and write one property. Logging is left to the caller."""
        self._validate_description(description)

        with self.store.transaction():
            property_id = self.allocator.next_id()
            self.allocator.commit(property_id)
            self.store.put(OWNER_TABLE, property_id, caller_id)
            self.store.put(LOCK_TABLE, property_id, False)
            self.store.put(DESCRIPTION_TABLE, property_id, description)
        return property_id

    def bulk_register(self, caller_id: str, descriptions: list[str]) -> list[int]:
        """Register several properties in order as one unit.

        The first invalid description aborts the whole batch: no id from
        the batch is committed and the counter is left unchanged.

        Returns:
            The new property ids, consecutive, in input order

        Raises:
            Unauthorized: If caller is not the administrator
            InvalidData: If the batch is empty, larger than bulk_max, or
                any description is out of bounds
        """
        self.require_admin(caller_id, "bulk-register properties")
        limit = self.config.bulk_max
        if not isinstance(descriptions, list) or not 1 <= len(descriptions) <= limit:
            size = len(descriptions) if isinstance(descriptions, list) else None
            raise InvalidData(
                f"Bulk registration takes 1-{limit} descriptions.",
                field="descriptions",
                size=size,
            )

        ids: list[int] = []
        with self.store.transaction():
            for index, description in enumerate(descriptions):
                try:
                    ids.append(self._register_one(caller_id, description))
                except InvalidData as e:
                    raise InvalidData(
                        f"Batch aborted at index {index}: {e.message}",
                        index=index,
                        **e.details,
                    ) from e

        logger.info("Bulk-registered %d properties: %s", len(ids), ids)
        return ids

    # ===== TRANSFER =====

    def transfer(self, caller_id: str, property_id: int, recipient_id: str) -> None:
        """Hand a property to a new owner and lock it for good.

        The lock is checked before ownership, so once a property is
        locked every caller gets AlreadyTransferred.

        Raises:
            NotFound: If the property is not registered
            AlreadyTransferred: If the property is already locked
            Unauthorized: If caller is not the owner, or approvals are
                required and recipient is not approved
        """
        self.require_exists(property_id)
        if self.is_locked(property_id):
            raise AlreadyTransferred(
                f"Property {property_id} has already been transferred or frozen.",
                property_id=property_id,
            )
        self.require_owner(property_id, caller_id, "transfer it")
        if self.config.require_transfer_approval and not self.store.get(
            APPROVAL_TABLE, (property_id, recipient_id), False
        ):
            raise Unauthorized(
                f"Recipient {recipient_id} is not approved for property {property_id}.",
                property_id=property_id,
                recipient=recipient_id,
            )

        with self.store.transaction():
            self.store.put(OWNER_TABLE, property_id, recipient_id)
            self.store.put(LOCK_TABLE, property_id, True)

        logger.info(
            "Transferred property %d from %s to %s", property_id, caller_id, recipient_id
        )

    def freeze(self, caller_id: str, property_id: int) -> None:
        """Lock a property against transfers without changing its owner.

        Idempotent.

        Raises:
            Unauthorized: If caller is not the owner (a missing property
                has no owner)
        """
        self.require_owner(property_id, caller_id, "freeze it")
        self.store.put(LOCK_TABLE, property_id, True)
        logger.info("Froze property %d (owner %s)", property_id, caller_id)

    # ===== QUERIES =====

    def owner_of(self, property_id: int) -> str | None:
        """Current owner, None if the property does not exist."""
        owner: str | None = self.store.get(OWNER_TABLE, property_id)
        return owner

    def description(self, property_id: int) -> str | None:
        """Primary description, None if the property does not exist."""
        text: str | None = self.store.get(DESCRIPTION_TABLE, property_id)
        return text

    def is_locked(self, property_id: int) -> bool:
        """Whether transfers are permanently blocked. False for missing ids."""
        return bool(self.store.get(LOCK_TABLE, property_id, False))

    def exists(self, property_id: int) -> bool:
        """Whether the property has an ownership record."""
        return self.store.contains(OWNER_TABLE, property_id)

    def can_transfer(self, property_id: int) -> bool:
        """Whether a transfer could still succeed for this property."""
        return self.exists(property_id) and not self.is_locked(property_id)

    def next_id(self) -> int:
        """Id the next registration will receive."""
        return self.allocator.next_id()

    def last_id(self) -> int:
        """Last assigned id, 0 before the first registration."""
        return self.allocator.last_id()

    def count(self) -> int:
        """Number of registered properties. Ids are dense, so this is last_id."""
        return self.allocator.last_id()

    def is_valid_range(self, low: int, high: int) -> bool:
        """Whether 1 <= low <= high <= last_id."""
        return 1 <= low <= high <= self.last_id()

    def properties_of(self, owner_id: str) -> list[int]:
        """Ids currently owned by owner_id, ascending."""
        return [
            int(key[0])
            for key, owner in self.store.items(OWNER_TABLE)
            if owner == owner_id
        ]
