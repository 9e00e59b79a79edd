class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFound(DomainError):
    """Raised when a student or an attendance record does not exist."""


class InvalidTransition(ValidationError):
    """Raised when a manual override asks for a status outside the closed enum."""


class StoreUnavailable(DomainError):
    """Raised when the ledger store cannot be reached; fatal to the current operation only."""


class VersionConflict(DomainError):
    """Raised when a student document changed underneath a read-modify-write."""


class NotificationFailed(DomainError):
    """Raised by message transports; converted to a result before leaving the engine."""


RecordNotFound = NotFound
InvalidStatus = InvalidTransition
