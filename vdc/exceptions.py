# vdc/exceptions.py
"""Exception hierarchy for the VDC service."""


class VDCError(Exception):
    """Base class for all service errors."""


class DatabaseUnavailableError(VDCError):
    """Raised at startup when the vehicle record store cannot be reached."""


class AuthenticationError(VDCError):
    """Raised when credentials or a bearer token are rejected."""

    def __init__(self, status_code: int, error: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message
