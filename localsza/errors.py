"""Error taxonomy shared by the storage layer, the stores, and their helpers."""

from __future__ import annotations

from enum import Enum


class ErrorType(str, Enum):
    """Categories of failure the client-state layer distinguishes."""

    MALFORMED_DATA = "malformed_data"
    STORAGE_WRITE_FAILURE = "storage_write_failure"
    SCOPE_VIOLATION = "scope_violation"
    INVALID_SHARE_LINK = "invalid_share_link"
    NO_ROUTE_STOPS = "no_route_stops"


class LocalsZAError(Exception):
    """Base class for errors raised to callers of the ``localsza`` package."""

    error_type: ErrorType = ErrorType.MALFORMED_DATA

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingProviderError(LocalsZAError, LookupError):
    """Raised when a store is requested outside the scope that provides it."""

    error_type = ErrorType.SCOPE_VIOLATION

    def __init__(self, accessor: str, provider: str = "StoreScope") -> None:
        super().__init__(f"{accessor} must be used within a {provider}")
        self.accessor = accessor
        self.provider = provider


class SharedCartDecodeError(LocalsZAError, ValueError):
    """Raised when a shared cart link cannot be turned back into items."""

    error_type = ErrorType.INVALID_SHARE_LINK


class NoRouteStopsError(LocalsZAError, ValueError):
    """Raised when navigation is requested for a route without usable stops."""

    error_type = ErrorType.NO_ROUTE_STOPS

    def __init__(self, message: str = "No valid stops provided") -> None:
        super().__init__(message)


__all__ = [
    "ErrorType",
    "LocalsZAError",
    "MissingProviderError",
    "NoRouteStopsError",
    "SharedCartDecodeError",
]
