"""
Client State Schema Definitions.

This module provides the state records owned by the session and
synchronization engine: the session projection, the authentication flow
state, the editor draft, and the standardized operation result.

Features:
- Session projection with a single loading/present/absent status
- Auth flow mode enumeration with pending OTP email
- Editor draft with derived word and character counts
- Discriminated success/failure result for every async operation
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .database_models import UserIdentity
from ..utils.exceptions import QuillQuiverError


class SessionStatus(str, Enum):
    """Mutually exclusive session states."""
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionState(BaseModel):
    """Session projection shared with the rest of the client."""
    model_config = ConfigDict(frozen=True)

    user: Optional[UserIdentity] = None
    loading: bool = True

    @property
    def status(self) -> SessionStatus:
        if self.loading:
            return SessionStatus.LOADING
        return SessionStatus.AUTHENTICATED if self.user else SessionStatus.ANONYMOUS

    @classmethod
    def resolved(cls, user: Optional[UserIdentity]) -> 'SessionState':
        return cls(user=user, loading=False)


class AuthMode(str, Enum):
    """Credential form shown by the unauthenticated shell."""
    SIGN_IN = "signin"
    SIGN_UP = "signup"
    OTP_VERIFY = "otp"


class AuthFlowState(BaseModel):
    """Auth mode and the email an OTP was last requested for."""
    model_config = ConfigDict(frozen=True)

    mode: AuthMode = AuthMode.SIGN_IN
    pending_email: str = ""
    otp_input_epoch: int = Field(0, description="Bumped when a resend should clear the code input")


class EditDraft(BaseModel):
    """In-memory, possibly unsaved edit state of the bound note."""
    model_config = ConfigDict(frozen=True)

    note_id: str
    title: str = ""
    content: str = ""
    dirty: bool = False
    saving: bool = False

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    @property
    def char_count(self) -> int:
        return len(self.content)


class OperationResult(BaseModel):
    """
    Standardized outcome for every asynchronous client operation.

    Exactly one of ``data`` (on success) or ``error`` (on failure) is
    meaningful.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    success: bool
    data: Any = None
    error: Optional[QuillQuiverError] = None

    @classmethod
    def ok(cls, data: Any = None) -> 'OperationResult':
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: QuillQuiverError) -> 'OperationResult':
        return cls(success=False, error=error)

    @property
    def error_message(self) -> Optional[str]:
        """User-facing message of the error, if any."""
        return self.error.user_message if self.error else None
