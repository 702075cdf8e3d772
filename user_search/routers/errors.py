"""
Mapping of domain exceptions to HTTP errors.

Zero results and denied queries are successful responses; only real
failures come through here, each with its own error code so clients can
tell connectivity problems from storage problems.
"""

import structlog
from fastapi import HTTPException, status

from ..domain.exceptions import (
    NetworkException,
    StorageException,
    ValidationException,
)

logger = structlog.get_logger(__name__)


def to_http_exception(error: Exception) -> HTTPException:
    """
    Convert an exception raised by the service layer to an HTTPException.

    Args:
        error: Exception raised while handling a request

    Returns:
        HTTPException with a structured detail body
    """
    if isinstance(error, ValidationException):
        status_code, code = status.HTTP_400_BAD_REQUEST, "validation_error"
    elif isinstance(error, NetworkException):
        status_code, code = status.HTTP_502_BAD_GATEWAY, "network_error"
    elif isinstance(error, StorageException):
        status_code, code = status.HTTP_503_SERVICE_UNAVAILABLE, "storage_error"
    else:
        logger.error("Unexpected error", error=str(error), exc_info=error)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "success": False,
                "error": "internal_error",
                "message": "An unexpected error occurred",
                "details": {},
            },
        )

    logger.warning("Request failed", error=code, message=error.message)
    return HTTPException(
        status_code=status_code,
        detail={
            "success": False,
            "error": code,
            "message": error.message,
            "details": error.details,
        },
    )
