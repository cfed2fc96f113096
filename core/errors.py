"""
core/errors.py -- Domain error hierarchy for the classifieds service.

Stores and services raise these; api/main.py owns the single exception handler
that turns them into the ErrorResponse envelope. Each class carries its own
machine-readable code and HTTP status so the mapping lives next to the error,
not in a lookup table in the route layer.

Layer rule: no imports from api/, auth/, or listings/.
"""

from __future__ import annotations


class ClassifiedsError(Exception):
    """Base class for every error the service reports to a caller."""

    code = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DuplicateEmailError(ClassifiedsError):
    code = "duplicate_email"
    status_code = 400

    def __init__(self, message: str = "This email address is already in use.") -> None:
        super().__init__(message)


class InvalidCredentialsError(ClassifiedsError):
    """Raised for an unknown email AND for a wrong password -- same message for both."""

    code = "invalid_credentials"
    status_code = 400

    def __init__(self, message: str = "Invalid email or password.") -> None:
        super().__init__(message)


class UnauthorizedError(ClassifiedsError):
    """Any failure of the authorization gate.

    Subclasses exist so callers and logs can tell the cases apart; clients only
    ever see code "unauthorized" and the generic message.
    """

    code = "unauthorized"
    status_code = 401
    public_message = "Authentication required."

    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(message)


class MissingTokenError(UnauthorizedError):
    def __init__(self, message: str = "No session token presented.") -> None:
        super().__init__(message)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, message: str = "Session token is invalid.") -> None:
        super().__init__(message)


class ExpiredTokenError(UnauthorizedError):
    def __init__(self, message: str = "Session token has expired.") -> None:
        super().__init__(message)


class AccountNotFoundError(UnauthorizedError):
    def __init__(self, message: str = "Account not found.") -> None:
        super().__init__(message)


class ValidationError(ClassifiedsError):
    """Missing or invalid input fields. field names the first offending field."""

    code = "validation_error"
    status_code = 422

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(ClassifiedsError):
    """Listing absent OR not owned by the caller. Callers cannot tell which."""

    code = "not_found"
    status_code = 404

    def __init__(self, message: str = "Listing not found.") -> None:
        super().__init__(message)
