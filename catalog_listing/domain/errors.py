from __future__ import annotations
from typing import Any, Optional


class ListingError(Exception):
    """Base class for everything the listing engine raises."""
    def __init__(self, message: str, error_code: str = "LISTING_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class BackendError(ListingError):
    """Transport failure, non-2xx status or an envelope that does not parse."""
    def __init__(self, operation: str, reason: str, status_code: int | None = None):
        message = f"Backend call '{operation}' failed: {reason}"
        super().__init__(message, "BACKEND_ERROR",
                         {"operation": operation, "reason": reason, "status_code": status_code})
        self.status_code = status_code


class CycleCancelled(ListingError):
    """Raised inside a resolution cycle once a newer cycle has superseded it."""
    def __init__(self, cycle_id: int):
        super().__init__(f"Resolution cycle {cycle_id} was superseded", "CYCLE_CANCELLED",
                         {"cycle_id": cycle_id})
        self.cycle_id = cycle_id


class InvalidFilterError(ListingError, ValueError):
    """A filter commit was rejected; nothing was changed."""
    def __init__(self, field: str, message: str):
        super().__init__(message, "INVALID_FILTER", {"field": field})
        self.field = field
