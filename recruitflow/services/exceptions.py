class ServiceError(Exception):
    """Base exception for errors surfaced to API callers."""


class NotFoundError(ServiceError):
    """Raised when a candidate, attachment, job, prompt or stage does not exist."""


class ConflictError(ServiceError):
    """Raised when a job for the same attachment is already in flight."""


class ValidationError(ServiceError):
    """Raised when required input is missing or invalid, before any I/O."""
