"""Registry - Type definitions

Shared TypedDict definitions for stored records and contract results.
"""

from typing import Any, TypedDict


class MethodInfo(TypedDict):
    """Information about a contract method for listing."""
    name: str
    mutating: bool
    description: str


class InsuranceInfo(TypedDict):
    """Stored insurance record."""
    insured: bool
    provider: str | None


class MaintenanceEntry(TypedDict):
    """One maintenance log entry."""
    sequence: int
    description: str
    date: str


class AppraisalEntry(TypedDict):
    """One appraisal log entry."""
    timestamp: int
    value: int


class PropertyRecord(TypedDict):
    """Every stored fact about one property."""
    property_id: int
    owner: str
    description: str
    locked: bool
    category: str | None
    location: str | None
    value: int | None
    tax: int | None
    insurance: InsuranceInfo | None
    occupied: bool | None
    zoning: str | None
    construction_year: int | None
    listed: bool
    maintenance: list[MaintenanceEntry]
    appraisals: list[AppraisalEntry]


class RegisterResult(TypedDict):
    """Result from register."""
    success: bool
    property_id: int
    owner: str


class TransferResult(TypedDict):
    """Result from transfer."""
    success: bool
    property_id: int
    from_owner: str
    to_owner: str
    locked: bool


class QueryResult(TypedDict, total=False):
    """Result from a read-only method."""
    success: bool
    property_id: int
    result: Any
