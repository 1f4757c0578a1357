"""
Domain exceptions for the replenishment engine.

There is no "no matching purchase order" error: that is a normal outcome
of the receipt and restock transactions, not an error.
"""

from datetime import date
from typing import Any


class ReplenishmentError(Exception):
    """Base exception for all replenishment engine errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or type(self).__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "details": self.details}


class ConfigurationError(ReplenishmentError):
    pass


# Storage


class StorageError(ReplenishmentError):
    """
    A store call failed and its transaction was rolled back.

    Subclasses are built from the store operation name and the driver's
    message, both kept in ``details``.
    """

    error_code = "STORAGE_ERROR"
    summary = "Storage failure"

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"{self.summary} during {operation}: {error}",
            code=self.error_code,
            details={"operation": operation, "error": error},
        )
        self.operation = operation


class DatabaseError(StorageError):
    error_code = "DATABASE_ERROR"
    summary = "Database error"


class ConstraintViolationError(StorageError):
    """A write broke a referential or check constraint."""

    error_code = "CONSTRAINT_VIOLATION"
    summary = "Constraint violated"


# Request validation


class ValidationError(ReplenishmentError):
    """A request value was rejected before any store was touched."""

    def __init__(
        self,
        field: str,
        message: str,
        value: Any = None,
        code: str = "VALIDATION_ERROR",
    ):
        super().__init__(
            f"Invalid {field}: {message}",
            code=code,
            details={
                "field": field,
                "reason": message,
                # Echo at most 100 characters of what the caller sent
                "value": None if value is None else str(value)[:100],
            },
        )


class InvalidDateRangeError(ValidationError):
    """Report date range does not span at least one calendar month."""

    def __init__(self, start_date: date, end_date: date):
        start, end = start_date.isoformat(), end_date.isoformat()
        super().__init__(
            "end_date",
            f"range {start} .. {end} must cross at least one month boundary",
            value=end,
            code="INVALID_DATE_RANGE",
        )
        self.details["start_date"] = start
        self.details["end_date"] = end


class AmbiguousSortKeyError(ValidationError):
    """Free-text sort hint matched more than one basis or metric."""

    def __init__(self, hint: str, matches: list[str]):
        super().__init__(
            "sort_by",
            f"sort hint '{hint}' is ambiguous, matched: {', '.join(matches)}",
            value=hint,
            code="AMBIGUOUS_SORT_KEY",
        )
        self.details["matches"] = matches
