"""Domain exceptions shared by services and API routes.

Each exception carries the HTTP status it maps to, so the app-level
handler can render it without a lookup table.
"""


class IntelBoardError(Exception):
    """Base class for IntelBoard errors."""

    status_code = 500

    def __init__(self, message: str = "Internal error", status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(IntelBoardError):
    """Input failed validation."""
    status_code = 400


class AuthenticationError(IntelBoardError):
    """Caller is not (or cannot be) authenticated."""
    status_code = 401


class AuthorizationError(IntelBoardError):
    """Caller lacks the role or ownership required."""
    status_code = 403


class NotFoundError(IntelBoardError):
    """Referenced entity does not exist."""
    status_code = 404


class ConflictError(IntelBoardError):
    """Entity already exists or state forbids the change."""
    status_code = 409


class ServiceUnavailableError(IntelBoardError):
    """A backing service (database, LLM) is not configured or reachable."""
    status_code = 503
