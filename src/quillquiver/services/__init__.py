"""
Services package for the session and synchronization engine.

This package provides the remote service facades and the client-side
controllers built on them: session management, the auth flow state
machine, the note collection store, the note edit session and the
workspace that composes them.
"""

from .facade import RemoteServiceFacade
from .memory_facade import InMemoryFacade
from .session_manager import SessionManager
from .auth_flow import AuthFlowController
from .note_store import NoteCollectionStore, NoteCollectionState
from .edit_session import NoteEditSession, EditSessionState
from .workspace import Workspace

__all__ = [
    "RemoteServiceFacade",
    "InMemoryFacade",
    "SessionManager",
    "AuthFlowController",
    "NoteCollectionStore",
    "NoteCollectionState",
    "NoteEditSession",
    "EditSessionState",
    "Workspace",
]
