"""
Pydantic schemas for notes, identities and client state.
"""

from .database_models import BaseEntity, UserIdentity, Note, NoteUpdate
from .state_schemas import (
    SessionStatus,
    SessionState,
    AuthMode,
    AuthFlowState,
    EditDraft,
    OperationResult,
)

__all__ = [
    "BaseEntity",
    "UserIdentity",
    "Note",
    "NoteUpdate",
    "SessionStatus",
    "SessionState",
    "AuthMode",
    "AuthFlowState",
    "EditDraft",
    "OperationResult",
]
