class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class QuantityExceededError(ValidationError):
    """Raised when a check-in asks for more units than the attendee registered."""


class AuthorizationError(DomainError):
    """Raised when an operator lacks permission for an action."""


class StationGatedError(AuthorizationError):
    """Raised when the main station has not been checked for the attendee yet."""


class RoleRestrictedError(AuthorizationError):
    """Raised when the operator's role may not modify the station."""


class NotFoundError(DomainError):
    """Raised when an attendee, station or actor does not exist."""


class TransitionInProgressError(DomainError):
    """Raised when the same (attendee, station) key already has a write in flight."""


class TransitionFailedError(DomainError):
    """Raised when a write failed after all retries; local state was rolled back."""


class LoadError(DomainError):
    """Raised when a roster, catalog or statistics load fails."""


class StoreError(Exception):
    """Transient row-store failure (network, lock wait, dropped connection)."""


class SubscriptionError(Exception):
    """Change-feed channel failure."""
