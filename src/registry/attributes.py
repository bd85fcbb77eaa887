"""Attribute store - descriptive side-tables keyed by property id

Every setter is owner-only: it checks PropertyLedger.authorize_owner()
before touching its table, so a missing property or a non-owner caller
both fail with Unauthorized and leave the stored value as it was.
Getters never fail; an absent value reads as None (False for flags,
an empty list for logs).

Singleton fields are overwritten. The maintenance and appraisal logs
are append-only: each entry is keyed by a caller-supplied sequence
number or timestamp, and an existing key cannot be written again.
"""

from __future__ import annotations

import logging
from typing import Any

from .constants import (
    AGE_TABLE,
    APPRAISAL_TABLE,
    APPROVAL_TABLE,
    CATEGORY_TABLE,
    INSURANCE_TABLE,
    LISTING_TABLE,
    LOCATION_TABLE,
    MAINTENANCE_TABLE,
    OCCUPANCY_TABLE,
    TAX_TABLE,
    VALUE_TABLE,
    ZONING_TABLE,
)
from .errors import InvalidData
from .ledger import PropertyLedger
from .store import KeyValueStore
from .types import AppraisalEntry, InsuranceInfo, MaintenanceEntry, PropertyRecord

logger = logging.getLogger(__name__)


class AttributeStore:
    """Owner-gated attributes for registered properties.

    Shares the ledger's store, so attribute writes take part in any
    transaction the caller has open.
    """

    ledger: PropertyLedger

    def __init__(self, ledger: PropertyLedger) -> None:
        self.ledger = ledger

    @property
    def store(self) -> KeyValueStore:
        return self.ledger.store

    # ===== VALIDATION =====

    def _text(self, field: str, value: Any) -> str:
        lo = self.ledger.config.text_min_length
        hi = self.ledger.config.text_max_length
        if not isinstance(value, str):
            raise InvalidData(
                f"{field} must be a string, got {type(value).__name__}.",
                field=field,
            )
        if not lo <= len(value) <= hi:
            raise InvalidData(
                f"{field} must be {lo}-{hi} characters, got {len(value)}.",
                field=field,
                length=len(value),
            )
        return value

    @staticmethod
    def _amount(field: str, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidData(
                f"{field} must be an integer, got {type(value).__name__}.",
                field=field,
            )
        if value < 0:
            raise InvalidData(f"{field} must not be negative, got {value}.", field=field)
        return value

    @staticmethod
    def _flag(field: str, value: Any) -> bool:
        if not isinstance(value, bool):
            raise InvalidData(
                f"{field} must be true or false, got {type(value).__name__}.",
                field=field,
            )
        return value

    def _set(self, caller_id: str, property_id: int, table: str, value: Any) -> None:
        # Callers check ownership before validating, so Unauthorized wins
        self.store.put(table, property_id, value)
        logger.info("Set %s of property %d (owner %s)", table, property_id, caller_id)

    # ===== SINGLETON SETTERS =====

    def set_category(self, caller_id: str, property_id: int, category: str) -> None:
        self.ledger.require_owner(property_id, caller_id, "set its category")
        self._set(caller_id, property_id, CATEGORY_TABLE, self._text("category", category))

    def set_location(self, caller_id: str, property_id: int, location: str) -> None:
        self.ledger.require_owner(property_id, caller_id, "set its location")
        self._set(caller_id, property_id, LOCATION_TABLE, self._text("location", location))

    def set_value(self, caller_id: str, property_id: int, value: int) -> None:
        """Record the property's current valuation."""
        self.ledger.require_owner(property_id, caller_id, "set its value")
        self._set(caller_id, property_id, VALUE_TABLE, self._amount("value", value))

    def set_tax(self, caller_id: str, property_id: int, amount: int) -> None:
        self.ledger.require_owner(property_id, caller_id, "set its tax")
        self._set(caller_id, property_id, TAX_TABLE, self._amount("tax", amount))

    def set_insurance(
        self,
        caller_id: str,
        property_id: int,
        insured: bool,
        provider: str | None = None,
    ) -> None:
        """Record insurance status.

        A provider is required when insured is True and dropped when it
        is False.
        """
        self.ledger.require_owner(property_id, caller_id, "set its insurance")
        record: InsuranceInfo = {
            "insured": self._flag("insured", insured),
            "provider": self._text("provider", provider) if insured else None,
        }
        self._set(caller_id, property_id, INSURANCE_TABLE, record)

    def set_occupancy(self, caller_id: str, property_id: int, occupied: bool) -> None:
        self.ledger.require_owner(property_id, caller_id, "set its occupancy")
        self._set(caller_id, property_id, OCCUPANCY_TABLE, self._flag("occupied", occupied))

    def set_zoning(self, caller_id: str, property_id: int, zoning: str) -> None:
        self.ledger.require_owner(property_id, caller_id, "set its zoning")
        self._set(caller_id, property_id, ZONING_TABLE, self._text("zoning", zoning))

    def set_age(self, caller_id: str, property_id: int, construction_year: int) -> None:
        """Record the year the property was built."""
        self.ledger.require_owner(property_id, caller_id, "set its construction year")
        self._set(
            caller_id, property_id, AGE_TABLE,
            self._amount("construction_year", construction_year),
        )

    def set_listing(self, caller_id: str, property_id: int, listed: bool) -> None:
        self.ledger.require_owner(property_id, caller_id, "change its listing")
        self._set(caller_id, property_id, LISTING_TABLE, self._flag("listed", listed))

    def list_property(self, caller_id: str, property_id: int) -> None:
        self.set_listing(caller_id, property_id, True)

    def delist_property(self, caller_id: str, property_id: int) -> None:
        self.set_listing(caller_id, property_id, False)

    def set_transfer_approval(
        self,
        caller_id: str,
        property_id: int,
        candidate_id: str,
        approved: bool = True,
    ) -> None:
        """Add or remove candidate from the property's transfer allow-list.

        Only consulted by transfer() when registry.require_transfer_approval
        is enabled.
        """
        self.ledger.require_owner(property_id, caller_id, "approve transfer recipients")
        candidate = self._text("candidate", candidate_id)
        self.store.put(APPROVAL_TABLE, (property_id, candidate), self._flag("approved", approved))
        logger.info(
            "Transfer approval for %s on property %d set to %s",
            candidate, property_id, approved,
        )

    # ===== APPEND-ONLY LOGS =====

    def append_maintenance_entry(
        self,
        caller_id: str,
        property_id: int,
        sequence: int,
        description: str,
        date: str,
    ) -> None:
        """Add a maintenance record under a new sequence number.

        Raises:
            Unauthorized: If caller is not the owner
            InvalidData: If a field is invalid or the sequence is taken
        """
        self.ledger.require_owner(property_id, caller_id, "log maintenance")
        entry: MaintenanceEntry = {
            "sequence": self._amount("sequence", sequence),
            "description": self._text("description", description),
            "date": self._text("date", date),
        }
        key = (property_id, sequence)
        if self.store.contains(MAINTENANCE_TABLE, key):
            raise InvalidData(
                f"Maintenance entry {sequence} already exists for property {property_id}.",
                field="sequence",
                property_id=property_id,
            )
        self.store.put(MAINTENANCE_TABLE, key, entry)
        logger.info("Logged maintenance %d on property %d", sequence, property_id)

    def append_appraisal_entry(
        self,
        caller_id: str,
        property_id: int,
        timestamp: int,
        value: int,
    ) -> None:
        """Add an appraisal under a new timestamp.

        Raises:
            Unauthorized: If caller is not the owner
            InvalidData: If a field is invalid or the timestamp is taken
        """
        self.ledger.require_owner(property_id, caller_id, "log appraisals")
        entry: AppraisalEntry = {
            "timestamp": self._amount("timestamp", timestamp),
            "value": self._amount("value", value),
        }
        key = (property_id, timestamp)
        if self.store.contains(APPRAISAL_TABLE, key):
            raise InvalidData(
                f"Appraisal at {timestamp} already exists for property {property_id}.",
                field="timestamp",
                property_id=property_id,
            )
        self.store.put(APPRAISAL_TABLE, key, entry)
        logger.info("Logged appraisal at %d on property %d", timestamp, property_id)

    # ===== GETTERS =====

    def category(self, property_id: int) -> str | None:
        return self.store.get(CATEGORY_TABLE, property_id)

    def location(self, property_id: int) -> str | None:
        return self.store.get(LOCATION_TABLE, property_id)

    def value(self, property_id: int) -> int | None:
        return self.store.get(VALUE_TABLE, property_id)

    def tax(self, property_id: int) -> int | None:
        return self.store.get(TAX_TABLE, property_id)

    def insurance(self, property_id: int) -> InsuranceInfo | None:
        return self.store.get(INSURANCE_TABLE, property_id)

    def occupancy(self, property_id: int) -> bool | None:
        return self.store.get(OCCUPANCY_TABLE, property_id)

    def zoning(self, property_id: int) -> str | None:
        return self.store.get(ZONING_TABLE, property_id)

    def age(self, property_id: int) -> int | None:
        """Construction year, None if never set."""
        return self.store.get(AGE_TABLE, property_id)

    def is_listed(self, property_id: int) -> bool:
        return bool(self.store.get(LISTING_TABLE, property_id, False))

    def is_transfer_approved(self, property_id: int, candidate_id: str) -> bool:
        return bool(self.store.get(APPROVAL_TABLE, (property_id, candidate_id), False))

    def maintenance_entry(self, property_id: int, sequence: int) -> MaintenanceEntry | None:
        return self.store.get(MAINTENANCE_TABLE, (property_id, sequence))

    def maintenance_log(self, property_id: int) -> list[MaintenanceEntry]:
        """All maintenance entries for a property, ordered by sequence."""
        return [entry for _, entry in self.store.items(MAINTENANCE_TABLE, (property_id,))]

    def appraisal(self, property_id: int, timestamp: int) -> int | None:
        entry: AppraisalEntry | None = self.store.get(APPRAISAL_TABLE, (property_id, timestamp))
        return entry["value"] if entry is not None else None

    def appraisal_history(self, property_id: int) -> list[AppraisalEntry]:
        """All appraisals for a property, ordered by timestamp."""
        return [entry for _, entry in self.store.items(APPRAISAL_TABLE, (property_id,))]

    def snapshot(self, property_id: int) -> PropertyRecord | None:
        """Every stored fact about a property, None if it does not exist."""
        owner = self.ledger.owner_of(property_id)
        if owner is None:
            return None
        return {
            "property_id": property_id,
            "owner": owner,
            "description": self.ledger.description(property_id) or "",
            "locked": self.ledger.is_locked(property_id),
            "category": self.category(property_id),
            "location": self.location(property_id),
            "value": self.value(property_id),
            "tax": self.tax(property_id),
            "insurance": self.insurance(property_id),
            "occupied": self.occupancy(property_id),
            "zoning": self.zoning(property_id),
            "construction_year": self.age(property_id),
            "listed": self.is_listed(property_id),
            "maintenance": self.maintenance_log(property_id),
            "appraisals": self.appraisal_history(property_id),
        }
