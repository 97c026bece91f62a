"""
Domain exceptions - Semantic error types for identity and admission.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every exception carries an ErrorKind so the API layer can map it
to a stable status code without inspecting messages.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Stable error codes surfaced to API clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_OR_EXPIRED_OTP = "INVALID_OR_EXPIRED_OTP"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_ADMITTED = "NOT_ADMITTED"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"
    DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"


class IdentityError(Exception):
    """Base class for identity domain errors."""

    kind: ErrorKind = ErrorKind.VALIDATION_ERROR
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(IdentityError):
    """Missing or malformed input, including non-business email domains."""

    kind = ErrorKind.VALIDATION_ERROR
    default_message = "Invalid request"


class EmailAlreadyRegistered(IdentityError):
    """Email is already owned by an administrative or customer principal."""

    kind = ErrorKind.CONFLICT
    default_message = "An account already exists with this email"


class PrincipalNotFound(IdentityError):
    """No principal or customer matches the given key."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Account not found"


class InvalidCredentials(IdentityError):
    """Login failed. Unknown account and wrong password are not distinguished."""

    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class InvalidOrExpiredOtp(IdentityError):
    """One-time code missing, wrong, expired or already used."""

    kind = ErrorKind.INVALID_OR_EXPIRED_OTP
    default_message = "Invalid or expired OTP"


class Unauthorized(IdentityError):
    """Bearer token missing, malformed, expired or not an administrative principal."""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(IdentityError):
    """Caller is authenticated but its principal kind lacks the capability."""

    kind = ErrorKind.FORBIDDEN
    default_message = "Not allowed for this account"


class NotAdmitted(IdentityError):
    """Customer has not been approved by an administrator."""

    kind = ErrorKind.NOT_ADMITTED
    default_message = "Your account is awaiting approval"


class EmailNotVerified(IdentityError):
    """Customer has not confirmed control of the email address."""

    kind = ErrorKind.EMAIL_NOT_VERIFIED
    default_message = "Email address has not been verified"


class NotificationFailed(IdentityError):
    """Notifier could not deliver a message."""

    kind = ErrorKind.DEPENDENCY_FAILURE
    default_message = "Failed to deliver notification"


class ConfigurationError(Exception):
    """Process-level precondition missing (e.g. signing secret). Not recoverable per request."""

    pass
