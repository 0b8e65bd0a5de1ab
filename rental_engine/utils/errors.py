"""
Error taxonomy for availability, pricing and calendar sync.

Malformed feed content is deliberately absent: the feed parser degrades to
fewer events instead of raising.
"""
from typing import Any, List, Optional


class RentalEngineError(Exception):
    """Base class for every error raised by the engine."""


class ValidationError(RentalEngineError):
    """Invalid interval, price input or missing booking field. Never retried."""


class InvalidTransitionError(ValidationError):
    """A reservation status change not allowed by the transition table."""

    def __init__(self, current: Any, target: Any):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move reservation from '{current}' to '{target}'")


class ConflictError(RentalEngineError):
    """The requested interval overlaps occupying reservations."""

    def __init__(self, message: str, conflicting: Optional[List[Any]] = None):
        super().__init__(message)
        self.conflicting = list(conflicting or [])


class NotFoundError(RentalEngineError):
    """A referenced asset or reservation does not exist."""


class ConfigurationError(RentalEngineError):
    """Required configuration (e.g. the asset's feed URL) is missing."""


class FetchError(RentalEngineError):
    """The external feed could not be retrieved."""


class FetchTimeoutError(FetchError):
    """The feed fetch exceeded the caller-supplied timeout."""


class HttpError(FetchError):
    """The feed host answered with a non-success status or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyFeedError(RentalEngineError):
    """The feed parsed to zero usable events ("nothing to import")."""


class StoreError(RentalEngineError):
    """The record store rejected or failed an operation."""


class UniquenessError(StoreError):
    """Insert rejected by a uniqueness or exclusion constraint."""
