# simstudio/core/exceptions.py
"""
Domain-specific exceptions for the simulator studio.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the structured detail."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input shape or range validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when no caller identity was forwarded."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class SlotUnavailableException(DomainException):
    """Raised when a requested window is no longer bookable (taken or closed)."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "The selected time slot is no longer available",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class InsufficientCreditException(DomainException):
    """Raised when a debit exceeds the user's simulator-hour balance."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            message="Insufficient credits",
            code="INSUFFICIENT_CREDIT",
            details={"required": required, "available": available},
        )


class PastBookingException(DomainException):
    """Raised when cancelling a booking that has already started."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, booking_id: str):
        super().__init__(
            message="Bookings that have already started cannot be cancelled",
            code="PAST_BOOKING",
            details={"booking_id": booking_id},
        )


class MigrationRequiredException(DomainException):
    """Raised when storage lacks columns a feature depends on."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, table: str, missing_columns: list[str]):
        super().__init__(
            message=(
                f"Database schema is missing columns on {table}: {', '.join(missing_columns)}. "
                "Run the schema migration and retry."
            ),
            code="MIGRATION_REQUIRED",
            details={
                "needsMigration": True,
                "table": table,
                "missing_columns": missing_columns,
            },
        )


class UpstreamServiceException(ServiceException):
    """Raised when a collaborator (database, payment, email) keeps failing."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
