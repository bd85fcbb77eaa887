"""Error taxonomy and standardized error responses for the registry.

The ledger and attribute store raise RegistryError subclasses. The
contract surface converts them into error response dicts so callers
always get an explicit result value, never an exception.

Usage:
    from src.registry.errors import NotFound, error_response

    try:
        ledger.transfer(caller, property_id, recipient)
    except RegistryError as e:
        return error_response(e)
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - VALIDATION: Caller provided bad input
    - PERMISSION: Caller not authorized for this property
    - RESOURCE: Property missing or in the wrong state
    """

    VALIDATION = "validation"
    PERMISSION = "permission"
    RESOURCE = "resource"


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Domain errors
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    ALREADY_TRANSFERRED = "already_transferred"
    INVALID_DATA = "invalid_data"

    # Malformed calls
    MISSING_ARGUMENT = "missing_argument"
    INVALID_TYPE = "invalid_type"
    UNKNOWN_METHOD = "unknown_method"


class RegistryError(Exception):
    """Base class for registry failures. Carries a code and category."""

    code: ErrorCode = ErrorCode.INVALID_DATA
    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(self, message: str, **details: object) -> None:
        self.message = message
        self.details = dict(details)
        super().__init__(message)


class Unauthorized(RegistryError):
    """Caller lacks the required role for this property."""

    code = ErrorCode.UNAUTHORIZED
    category = ErrorCategory.PERMISSION


class NotFound(RegistryError):
    """Referenced property id has no ownership record."""

    code = ErrorCode.NOT_FOUND
    category = ErrorCategory.RESOURCE


class AlreadyTransferred(RegistryError):
    """Transfer attempted on a locked property."""

    code = ErrorCode.ALREADY_TRANSFERRED
    category = ErrorCategory.RESOURCE


class InvalidData(RegistryError):
    """A field is outside its bounds."""

    code = ErrorCode.INVALID_DATA
    category = ErrorCategory.VALIDATION


@dataclass
class ErrorResponse:
    """Standardized error response.

    All error responses include:
    - success: Always False
    - error: Human-readable message
    - code: Machine-readable error code
    - category: Error category (validation, permission, resource)
    - retriable: Whether the operation should be retried
    - details: Optional additional context
    """

    success: bool = False
    error: str = ""
    code: str = ""
    category: str = ""
    retriable: bool = False
    details: dict[str, object] | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        result: dict[str, object] = {
            "success": self.success,
            "error": self.error,
            "code": self.code,
            "category": self.category,
            "retriable": self.retriable,
        }
        if self.details:
            result["details"] = self.details
        return result


def error_response(exc: RegistryError) -> dict[str, object]:
    """Convert a raised RegistryError into an error response dict."""
    return ErrorResponse(
        error=exc.message,
        code=exc.code.value,
        category=exc.category.value,
        retriable=False,
        details=exc.details or None,
    ).to_dict()


def validation_error(
    message: str,
    code: ErrorCode = ErrorCode.INVALID_DATA,
    **details: object,
) -> dict[str, object]:
    """Create a validation error response.

    Use when the caller sent a malformed call (missing or mistyped
    arguments, unknown method).

    Args:
        message: Human-readable error message
        code: Specific error code (default: INVALID_DATA)
        **details: Additional context (e.g., required=["property_id"])

    Returns:
        Error response dict with success=False
    """
    return ErrorResponse(
        error=message,
        code=code.value,
        category=ErrorCategory.VALIDATION.value,
        retriable=False,
        details=dict(details) if details else None,
    ).to_dict()
