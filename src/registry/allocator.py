"""Identifier allocator - strictly increasing property ids

Property ids start at 1, are assigned densely and never reused.
The persisted counter holds the last assigned id (0 before the first
registration).

Usage:
    allocator = IdentifierAllocator(store)

    new_id = allocator.next_id()   # peek, no state change
    allocator.commit(new_id)       # advance the counter
"""

from __future__ import annotations

from .store import KeyValueStore


COUNTER_TABLE = "counter"
COUNTER_KEY = "last_id"


class IdentifierAllocator:
    """Monotonic id counter on top of a KeyValueStore.

    commit() only accepts the id returned by next_id(); the registry
    calls them back to back inside one transaction.
    """

    store: KeyValueStore

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def last_id(self) -> int:
        """Last assigned id, 0 when nothing has been registered."""
        value: int = self.store.get(COUNTER_TABLE, COUNTER_KEY, 0)
        return value

    def next_id(self) -> int:
        """Id the next registration will receive. Does not mutate state."""
        return self.last_id() + 1

    def commit(self, property_id: int) -> None:
        """Advance the counter to property_id.

        Raises:
            ValueError: If property_id is not exactly last_id() + 1
        """
        expected = self.next_id()
        if property_id != expected:
            raise ValueError(
                f"Out-of-order id commit: got {property_id}, expected {expected}"
            )
        self.store.put(COUNTER_TABLE, COUNTER_KEY, property_id)
