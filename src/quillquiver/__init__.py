"""
QuillQuiver - client-side session and synchronization engine

This package contains the core of the QuillQuiver note-taking client: the
authentication session state machine and the debounced note auto-save
logic, built against an opaque remote service facade.

Modules:
    config: Pydantic settings for Supabase, auth, editor and logging
    schemas: Pydantic models for notes, identities and client state
    services: Facades, session manager, auth flow, note store, edit session
    utils: Observable store, debounce timer, errors and logging setup
"""

__version__ = "0.1.0"
__author__ = "QuillQuiver Team"
