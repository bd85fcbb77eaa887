"""Centralized constants for the registry module.

Table names of the persisted state layout live here to avoid string
literals scattered across modules. Every table is keyed by the 1-based
property id (composite keys for the two log tables and approvals).
"""

# Ownership ledger
OWNER_TABLE = "owner"
LOCK_TABLE = "transfer_lock"
DESCRIPTION_TABLE = "description"

# Attribute store - singleton fields
CATEGORY_TABLE = "category"
LOCATION_TABLE = "location"
VALUE_TABLE = "value"
TAX_TABLE = "tax"
INSURANCE_TABLE = "insurance"
OCCUPANCY_TABLE = "occupancy"
ZONING_TABLE = "zoning"
AGE_TABLE = "construction_year"
LISTING_TABLE = "listing"

# Attribute store - composite keys
MAINTENANCE_TABLE = "maintenance"  # (property_id, sequence)
APPRAISAL_TABLE = "appraisal"  # (property_id, timestamp)
APPROVAL_TABLE = "transfer_approval"  # (property_id, candidate)
