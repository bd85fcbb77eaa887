# Property registry package
from .allocator import IdentifierAllocator
from .attributes import AttributeStore
from .contract import RegistryContract, RegistryMethod
from .errors import (
    AlreadyTransferred, ErrorCategory, ErrorCode, ErrorResponse, InvalidData,
    NotFound, RegistryError, Unauthorized, error_response, validation_error,
)
from .events import EventLogger
from .ledger import PropertyLedger
from .registry import PropertyRegistry
from .store import KeyValueStore, MemoryStore, SQLiteStore, create_store

__all__ = [
    "IdentifierAllocator",
    "AttributeStore",
    "RegistryContract", "RegistryMethod",
    "AlreadyTransferred", "ErrorCategory", "ErrorCode", "ErrorResponse",
    "InvalidData", "NotFound", "RegistryError", "Unauthorized",
    "error_response", "validation_error",
    "EventLogger",
    "PropertyLedger",
    "PropertyRegistry",
    "KeyValueStore", "MemoryStore", "SQLiteStore", "create_store",
]
