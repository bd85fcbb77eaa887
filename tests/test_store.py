"""Unit tests for the key-value stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config_schema import StoreConfig, TimeoutsConfig
from src.registry.store import KeyValueStore, MemoryStore, SQLiteStore, create_store


class TestBasicOperations:
    """get/put/contains/items on both backends."""

    def test_get_missing_returns_default(self, store: KeyValueStore) -> None:
        """Missing keys read as the default."""
        assert store.get("owner", 1) is None
        assert store.get("owner", 1, "nobody") == "nobody"
        assert store.contains("owner", 1) is False

    def test_put_then_get(self, store: KeyValueStore) -> None:
        """Stored values come back unchanged."""
        store.put("owner", 1, "admin")
        store.put("insurance", 1, {"insured": True, "provider": "Acme"})

        assert store.get("owner", 1) == "admin"
        assert store.get("insurance", 1) == {"insured": True, "provider": "Acme"}
        assert store.contains("owner", 1) is True

    def test_put_overwrites(self, store: KeyValueStore) -> None:
        """A second put replaces the first."""
        store.put("owner", 1, "admin")
        store.put("owner", 1, "alice")

        assert store.get("owner", 1) == "alice"
        assert store.count("owner") == 1

    def test_false_value_counts_as_present(self, store: KeyValueStore) -> None:
        """A stored False is distinct from an absent key."""
        store.put("transfer_lock", 1, False)

        assert store.contains("transfer_lock", 1) is True
        assert store.get("transfer_lock", 1, True) is False

    def test_scalar_and_tuple_keys_match(self, store: KeyValueStore) -> None:
        """A bare key is the same as a 1-tuple."""
        store.put("owner", 7, "admin")

        assert store.get("owner", (7,)) == "admin"

    def test_items_ordered_by_key(self, store: KeyValueStore) -> None:
        """items() sorts numerically, not by encoded string."""
        for seq in (10, 2, 1):
            store.put("maintenance", (1, seq), f"entry {seq}")
        store.put("maintenance", (2, 1), "other property")

        keys = [key for key, _ in store.items("maintenance", (1,))]

        assert keys == [(1, 1), (1, 2), (1, 10)]
        assert store.count("maintenance") == 4

    def test_tables_are_independent(self, store: KeyValueStore) -> None:
        """The same key in two tables holds two values."""
        store.put("category", 1, "residential")
        store.put("zoning", 1, "R1")

        assert store.get("category", 1) == "residential"
        assert store.get("zoning", 1) == "R1"


class TestTransactions:
    """Failure-atomic write groups."""

    def test_commit_on_success(self, store: KeyValueStore) -> None:
        """All writes land when the block exits normally."""
        with store.transaction():
            store.put("owner", 1, "admin")
            store.put("description", 1, "house")

        assert store.get("owner", 1) == "admin"
        assert store.get("description", 1) == "house"

    def test_rollback_on_error(self, store: KeyValueStore) -> None:
        """No write survives an exception inside the block."""
        store.put("owner", 1, "admin")

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.put("owner", 1, "alice")
                store.put("description", 2, "half-written")
                raise RuntimeError("boom")

        assert store.get("owner", 1) == "admin"
        assert store.contains("description", 2) is False

    def test_reads_see_own_writes(self, store: KeyValueStore) -> None:
        """Inside a transaction, reads reflect staged writes."""
        with store.transaction():
            store.put("counter", "last_id", 1)
            assert store.get("counter", "last_id") == 1
            assert store.items("counter") == [(("last_id",), 1)]

    def test_nested_transaction_joins_outer(self, store: KeyValueStore) -> None:
        """An inner block's writes are undone when the outer block fails."""
        with pytest.raises(ValueError):
            with store.transaction():
                with store.transaction():
                    store.put("owner", 1, "admin")
                raise ValueError("outer failure")

        assert store.contains("owner", 1) is False


class TestMemoryStore:
    """MemoryStore specifics."""

    def test_returned_values_are_copies(self) -> None:
        """Mutating a returned dict does not change stored state."""
        store = MemoryStore()
        store.put("insurance", 1, {"insured": True, "provider": "Acme"})

        record = store.get("insurance", 1)
        record["provider"] = "Changed"

        assert store.get("insurance", 1)["provider"] == "Acme"


class TestSQLiteStore:
    """SQLiteStore specifics."""

    def test_state_survives_reopen(self, tmp_path: Path) -> None:
        """A second store on the same file sees committed data."""
        db = tmp_path / "registry.db"
        first = SQLiteStore(db, timeouts=TimeoutsConfig())
        first.put("owner", 1, "admin")
        first.put("maintenance", (1, 3), {"sequence": 3})

        second = SQLiteStore(db, timeouts=TimeoutsConfig())

        assert second.get("owner", 1) == "admin"
        assert second.get("maintenance", (1, 3)) == {"sequence": 3}

    def test_rolled_back_data_not_persisted(self, tmp_path: Path) -> None:
        """Rolled-back writes never reach the file."""
        db = tmp_path / "registry.db"
        store = SQLiteStore(db, timeouts=TimeoutsConfig())
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.put("owner", 1, "admin")
                raise RuntimeError("boom")

        assert SQLiteStore(db, timeouts=TimeoutsConfig()).contains("owner", 1) is False


class TestCreateStore:
    """Backend selection from config."""

    def test_memory_backend(self) -> None:
        assert isinstance(create_store(StoreConfig(backend="memory")), MemoryStore)

    def test_sqlite_backend(self, tmp_path: Path) -> None:
        store = create_store(
            StoreConfig(backend="sqlite", path=str(tmp_path / "r.db")),
            TimeoutsConfig(),
        )
        assert isinstance(store, SQLiteStore)
        assert (tmp_path / "r.db").exists()
