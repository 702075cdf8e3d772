"""
Custom exceptions for the user search domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, database, etc.).
"""

from enum import Enum
from typing import Any, Optional


class NetworkErrorKind(str, Enum):
    """Failure categories of the remote user directory."""

    INVALID_URL = "invalid_url"
    TRANSPORT = "transport"
    DECODE = "decode"


class StorageErrorKind(str, Enum):
    """Failure categories of the local store."""

    IO_FAULT = "io_fault"
    CONSTRAINT_VIOLATION = "constraint_violation"


class UserSearchException(Exception):
    """Base exception for all user search errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NetworkException(UserSearchException):
    """Raised when a call to the remote user directory fails."""

    def __init__(
        self,
        kind: NetworkErrorKind,
        url: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.kind = kind
        message = f"Network request failed ({kind.value})"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message,
            details={"kind": kind.value, "url": url, "reason": reason},
        )


class StorageException(UserSearchException):
    """Raised when the local store cannot complete an operation."""

    def __init__(
        self,
        kind: StorageErrorKind,
        operation: str,
        reason: Optional[str] = None,
    ):
        self.kind = kind
        message = f"Storage {operation} failed ({kind.value})"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message,
            details={"kind": kind.value, "operation": operation, "reason": reason},
        )


class ValidationException(UserSearchException):
    """Raised when input validation fails."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(
            message=message,
            details={"field": field, "value": str(value), "reason": reason},
        )


class DataIntegrityException(UserSearchException):
    """Raised when data integrity constraints are violated."""

    def __init__(self, entity: str, reason: str):
        message = f"Data integrity error for {entity}: {reason}"
        super().__init__(message=message, details={"entity": entity, "reason": reason})
