# horizonfit/exceptions.py
from typing import Optional


class ProgressionError(Exception):
    """Base class for every error raised by the zone progression services."""
    status_code = 500

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)
        self.message = message


class NotFoundError(ProgressionError):
    """Referenced patient, video, task or zone record does not exist."""
    status_code = 404


class ValidationError(ProgressionError):
    """Missing or malformed input."""
    status_code = 400


class PreconditionError(ProgressionError):
    """A gate rule rejected the operation. Carries a GateReason."""
    status_code = 403

    def __init__(self, reason, message: str, days_remaining: Optional[int] = None):
        super().__init__(message)
        self.reason = reason
        self.days_remaining = days_remaining


class ConflictError(ProgressionError):
    """Concurrent writers kept invalidating the same row after all retries."""
    status_code = 409


class PersistenceError(ProgressionError):
    """The database rejected or failed the operation."""
    status_code = 500
