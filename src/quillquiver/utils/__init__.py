"""
Utility functions and helper modules.

This module contains shared utilities used across the client core: the
observable state container, the debounce timer, the error taxonomy and the
logging setup.
"""

from .observable import Observable
from .debounce import Debouncer
from .exceptions import (
    QuillQuiverError,
    ValidationError,
    AuthError,
    InvalidCredentialsError,
    OtpExpiredError,
    OtpInvalidError,
    PersistenceError,
    NotFoundError,
    RemoteErrorKind,
    RemoteServiceError,
)

__all__ = [
    "Observable",
    "Debouncer",
    "QuillQuiverError",
    "ValidationError",
    "AuthError",
    "InvalidCredentialsError",
    "OtpExpiredError",
    "OtpInvalidError",
    "PersistenceError",
    "NotFoundError",
    "RemoteErrorKind",
    "RemoteServiceError",
]
