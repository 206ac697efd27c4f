"""
Error taxonomy for the QuillQuiver client core.

Every error carries a short ``user_message`` suitable for display next to
the form or editor that triggered it. Services never raise these across the
asynchronous boundary; they are returned inside an ``OperationResult``.
"""

from enum import Enum
from typing import Optional


class QuillQuiverError(Exception):
    """Base exception for client core errors."""

    title: str = "Error"
    default_user_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(message or self.default_user_message)
        self.user_message = user_message or message or self.default_user_message


class ValidationError(QuillQuiverError):
    """Raised when local input is malformed. Never reaches the remote service."""
    title = "Error"


class AuthError(QuillQuiverError):
    """Raised when the remote service rejects an authentication request."""
    title = "Error"


class InvalidCredentialsError(AuthError):
    """Raised when email/password sign-in is rejected."""
    title = "Invalid Credentials"
    default_user_message = "Please check your email and password"


class OtpExpiredError(AuthError):
    """Raised when a one-time code has expired."""
    title = "OTP Expired"
    default_user_message = "The OTP has expired. Please request a new one."


class OtpInvalidError(AuthError):
    """Raised when a one-time code does not match."""
    title = "Invalid OTP"
    default_user_message = "Please check the OTP and try again"


class PersistenceError(QuillQuiverError):
    """Raised when a note create/update/delete/list fails remotely."""
    title = "Save Failed"
    default_user_message = "Your changes could not be saved. Please try again."


class NotFoundError(QuillQuiverError):
    """Raised when an operation references a note absent from the collection."""
    title = "Not Found"
    default_user_message = "The note no longer exists"


class RemoteErrorKind(str, Enum):
    """Failure categories reported by a remote service facade."""
    EXPIRED_TOKEN = "expired_token"
    INVALID_TOKEN = "invalid_token"
    INVALID_CREDENTIALS = "invalid_credentials"
    GENERIC = "generic"


class RemoteServiceError(Exception):
    """Raised by a remote service facade when a call fails."""

    def __init__(self, message: str, kind: RemoteErrorKind = RemoteErrorKind.GENERIC):
        super().__init__(message)
        self.kind = kind


def auth_error_from_remote(error: RemoteServiceError) -> AuthError:
    """Translate a facade failure into the session-layer auth taxonomy."""
    if error.kind == RemoteErrorKind.EXPIRED_TOKEN:
        return OtpExpiredError(str(error), OtpExpiredError.default_user_message)
    if error.kind == RemoteErrorKind.INVALID_TOKEN:
        return OtpInvalidError(str(error), OtpInvalidError.default_user_message)
    if error.kind == RemoteErrorKind.INVALID_CREDENTIALS:
        return InvalidCredentialsError(str(error), InvalidCredentialsError.default_user_message)
    return AuthError(str(error))
