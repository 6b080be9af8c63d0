class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class SessionLockedError(DomainError):
    """Raised when a student tries to sign in while the session is locked."""


class StoreUnavailableError(DomainError):
    """Raised when the session or reference-data store cannot be reached."""
