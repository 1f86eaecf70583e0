"""
Domain exceptions for the Simulation Lifecycle Service.

All exceptions follow the standard error format:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable description",
        "details": {}
    }
}
"""

from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, code, message, details=None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DomainError):
    """Validation error - request body or parameters fail validation."""

    def __init__(self, message, details=None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(DomainError):
    """Requested resource does not exist (or has been soft-deleted)."""

    def __init__(self, message, details=None):
        super().__init__("NOT_FOUND", message, details)


class InvalidTokenError(DomainError):
    """Expected concurrency token is not valid in its wire encoding."""

    def __init__(self, message="Invalid If-Match token; must be base64.", details=None):
        super().__init__("INVALID_TOKEN", message, details)


class ImmutabilityViolationError(DomainError):
    """Patch attempts to change a field frozen once the simulation started."""

    def __init__(self, field, reason):
        self.field = field
        super().__init__("IMMUTABILITY_VIOLATION", reason, {"field": field})


class IllegalTransitionError(DomainError):
    """Requested status change is not allowed by the state machine."""

    def __init__(self, current_status, target_status, reason):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            "ILLEGAL_TRANSITION",
            reason,
            {"from": str(current_status), "to": str(target_status)},
        )


class ConcurrencyConflictError(DomainError):
    """Expected token does not match the stored token at write time."""

    def __init__(self, current_token=None):
        self.current_token = current_token
        details = {}
        if current_token is not None:
            details["currentVersion"] = current_token.to_wire()
        super().__init__(
            "CONCURRENCY_CONFLICT",
            "The provided version does not match the current resource version.",
            details,
        )


class FileInUseError(DomainError):
    """Data source is being used by a simulation that is In Progress."""

    def __init__(self, message, details=None):
        super().__init__("FILE_IN_USE", message, details)


class DataSourceNotFoundError(DomainError):
    """Data source file does not exist."""

    def __init__(self, message, details=None):
        super().__init__("FILE_NOT_FOUND", message, details)


class DataSourceDirectoryNotFoundError(DomainError):
    """Directory of the data source file does not exist."""

    def __init__(self, message, details=None):
        super().__init__("DIRECTORY_NOT_FOUND", message, details)


class DataSourceLockedError(DomainError):
    """Data source file cannot be opened for reading."""

    def __init__(self, message, details=None):
        super().__init__("FILE_LOCKED", message, details)


STATUS_CODE_MAP = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_TOKEN": status.HTTP_400_BAD_REQUEST,
    "IMMUTABILITY_VIOLATION": status.HTTP_400_BAD_REQUEST,
    "ILLEGAL_TRANSITION": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONCURRENCY_CONFLICT": status.HTTP_409_CONFLICT,
    "FILE_IN_USE": status.HTTP_409_CONFLICT,
    "FILE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "DIRECTORY_NOT_FOUND": status.HTTP_400_BAD_REQUEST,
    "FILE_LOCKED": status.HTTP_423_LOCKED,
}


def error_response(exc, headers=None):
    """Render a DomainError in the standard error format."""
    status_code = STATUS_CODE_MAP.get(exc.code, status.HTTP_400_BAD_REQUEST)

    return Response(
        {
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details,
            }
        },
        status=status_code,
        headers=headers,
    )


def domain_exception_handler(exc, context):
    """
    Custom exception handler for domain exceptions.

    Returns standard error format:
    {
        "error": {
            "code": "ERROR_CODE",
            "message": "Human-readable description",
            "details": {}
        }
    }
    """
    # Handle domain exceptions
    if isinstance(exc, DomainError):
        return error_response(exc)

    # Use default REST framework exception handler for other exceptions
    response = exception_handler(exc, context)

    if response is not None:
        if response.status_code == status.HTTP_429_TOO_MANY_REQUESTS:
            code = "THROTTLED"
        elif response.status_code == status.HTTP_400_BAD_REQUEST:
            code = "VALIDATION_ERROR"
        elif response.status_code == status.HTTP_404_NOT_FOUND:
            code = "NOT_FOUND"
        else:
            code = "INTERNAL_ERROR"

        # Format standard REST framework errors
        if isinstance(response.data, dict) and "detail" in response.data:
            error_data = {
                "error": {
                    "code": code,
                    "message": str(response.data["detail"]),
                    "details": {},
                }
            }
        else:
            error_data = {
                "error": {
                    "code": code,
                    "message": "Validation failed"
                    if code == "VALIDATION_ERROR"
                    else "An error occurred",
                    "details": response.data,
                }
            }

        response.data = error_data

    # Log unhandled exceptions
    if response is None:
        logger.exception("Unhandled exception", exc_info=exc)
        return Response(
            {
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                    "details": {},
                }
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
