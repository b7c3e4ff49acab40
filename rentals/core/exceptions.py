# rentals/core/exceptions.py
"""
Domain-specific exceptions for the rental booking engine.

Every failure the engine can report is a DomainException subclass carrying a
stable ``code`` so API clients can branch on it. Routes convert these into
HTTP responses through ``to_http_exception()``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when request input is malformed or violates a temporal rule."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "INVALID_REQUEST"


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when no authenticated caller is present."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"


class ForbiddenException(DomainException):
    """Raised when the caller lacks the role or ownership for an action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific booking exceptions


class UnitUnavailableException(ConflictException):
    """Raised when a unit is inactive, missing, or blacked out for the window."""

    default_code = "UNIT_UNAVAILABLE"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Car unit is not available for the requested time",
            details=details,
        )


class SlotAlreadyBookedException(ConflictException):
    """Raised when a concurrent or existing booking already holds the window.

    Clients may retry with a different window; the failed attempt wrote nothing.
    """

    default_code = "SLOT_ALREADY_BOOKED"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = {"retryable": True}
        merged.update(details or {})
        super().__init__(
            message=message or "This time slot is already booked",
            details=merged,
        )


class NoRateConfiguredException(BusinessRuleException):
    """Raised when neither the unit nor its model carries a positive hourly rate."""

    default_code = "NO_RATE_CONFIGURED"

    def __init__(self, unit_id: str):
        super().__init__(
            message="No pricing configured for this car",
            details={"unit_id": unit_id},
        )


class InsufficientBalanceException(BusinessRuleException):
    """Raised when the customer's ledger balance cannot cover the price."""

    default_code = "INSUFFICIENT_BALANCE"

    def __init__(self, balance: int, required: int):
        super().__init__(
            message=f"Insufficient credits. Balance: {balance}, Required: {required}",
            details={
                "balance": balance,
                "required": required,
                "shortfall": required - balance,
            },
        )


class AccountBusyException(ConflictException):
    """Raised when another debit on the same account committed mid-transaction.

    Nothing was written; retrying re-reads the balance.
    """

    default_code = "ACCOUNT_BUSY"

    def __init__(self, user_id: str):
        super().__init__(
            message="Your balance changed while booking. Please try again.",
            details={"user_id": user_id, "retryable": True},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or unexpected constraint violations.
    """


def is_db_pool_exhaustion(exc: Exception) -> bool:
    """Check if an exception indicates DB connection pool exhaustion."""
    error_str = str(exc).lower()
    return "queuepool" in error_str or (
        "timeout" in error_str and ("connection" in error_str or "pool" in error_str)
    )

