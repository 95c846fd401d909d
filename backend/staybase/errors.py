"""Error kinds raised by the query core.

Errors propagate unchanged to the boundary (FastAPI exception handlers in
``staybase.main``), which maps them to HTTP responses.
"""


class StaybaseError(Exception):
    """Base class for all gateway errors."""

    pass


class ValidationError(StaybaseError, ValueError):
    """Raised for a missing or invalid argument."""

    pass


class NotFoundError(ValidationError):
    """Raised when a property or table role is not configured."""

    pass


class RemoteError(StaybaseError):
    """Raised when the remote store answers with a non-success response.

    Attributes:
        status: HTTP status code, or None when no response was received.
        message: Error message reported by the store (or the transport).
    """

    def __init__(self, status: int | None, message: str):
        self.status = status
        self.message = message
        super().__init__(f"Airtable API error ({status}): {message}" if status else f"Airtable API error: {message}")


class ConfigurationError(StaybaseError):
    """Raised when the property configuration is unusable."""

    pass
